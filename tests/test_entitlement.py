"""Unit tests for cashflowops.services.entitlement: tier checks, lazy downgrade and truncation."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

from cashflowops.core.errors import EntitlementError
from cashflowops.schemas.account import Account
from cashflowops.services.entitlement import (
    REASON_SUBSCRIPTION_EXPIRED,
    REASON_SUBSCRIPTION_REQUIRED,
    check_entitlement,
    effective_tier,
    higher_tier,
    require_entitlement,
    truncate_for_tier,
)
from cashflowops.stores.memory import InMemoryAccountStore

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


def _account(account_id: str = "acc-1", **kwargs: object) -> Account:
    """Build a minimal Account for tests."""
    defaults = {
        "username": f"user-{account_id}",
        "email": f"{account_id}@example.com",
        "password_hash": "x",
    }
    defaults.update(kwargs)
    return Account(id=account_id, **defaults)


def _stored(store: InMemoryAccountStore, **kwargs: object) -> Account:
    return store.insert(_account(**kwargs))


class TestAllowRules(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryAccountStore()

    def test_admin_is_always_allowed(self) -> None:
        admin = _stored(self.store, role="ADMIN", tier="FREE")
        decision = check_entitlement(self.store, admin, "MONTHLY", NOW)
        self.assertTrue(decision.allowed)
        self.assertIsNone(decision.reason)

    def test_admin_with_lapsed_expiry_is_not_downgraded(self) -> None:
        admin = _stored(self.store, role="ADMIN", tier="MONTHLY", subscription_expiry=NOW - timedelta(days=3))
        self.assertTrue(check_entitlement(self.store, admin, "MONTHLY", NOW).allowed)
        self.assertEqual(self.store.find_by_id(admin.id).tier, "MONTHLY")

    def test_free_requirement_allows_free_account(self) -> None:
        account = _stored(self.store)
        self.assertTrue(check_entitlement(self.store, account, "FREE", NOW).allowed)

    def test_active_paid_tier_is_allowed(self) -> None:
        account = _stored(self.store, tier="WEEKLY", subscription_expiry=NOW + timedelta(days=2))
        self.assertTrue(check_entitlement(self.store, account, "WEEKLY", NOW).allowed)

    def test_any_paid_tier_satisfies_a_paid_requirement(self) -> None:
        account = _stored(self.store, tier="WEEKLY", subscription_expiry=NOW + timedelta(days=2))
        self.assertTrue(check_entitlement(self.store, account, "MONTHLY", NOW).allowed)

    def test_paid_tier_without_expiry_is_allowed(self) -> None:
        account = _stored(self.store, tier="MONTHLY")
        self.assertTrue(check_entitlement(self.store, account, "MONTHLY", NOW).allowed)


class TestDenyRules(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryAccountStore()

    def test_free_account_needs_subscription(self) -> None:
        account = _stored(self.store)
        decision = check_entitlement(self.store, account, "WEEKLY", NOW)
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reason, REASON_SUBSCRIPTION_REQUIRED)
        self.assertEqual(decision.required_tier, "WEEKLY")
        self.assertEqual(decision.current_tier, "FREE")

    def test_expired_monthly_is_denied_then_downgraded(self) -> None:
        account = _stored(self.store, tier="MONTHLY", subscription_expiry=NOW - timedelta(days=1))

        first = check_entitlement(self.store, account, "WEEKLY", NOW)
        self.assertFalse(first.allowed)
        self.assertEqual(first.reason, REASON_SUBSCRIPTION_EXPIRED)
        self.assertEqual(first.current_tier, "FREE")
        self.assertEqual(account.tier, "FREE")
        self.assertEqual(self.store.find_by_id(account.id).tier, "FREE")

        second = check_entitlement(self.store, self.store.find_by_id(account.id), "WEEKLY", NOW)
        self.assertFalse(second.allowed)
        self.assertEqual(second.reason, REASON_SUBSCRIPTION_REQUIRED)

    def test_expiry_equal_to_now_counts_as_expired(self) -> None:
        account = _stored(self.store, tier="WEEKLY", subscription_expiry=NOW)
        decision = check_entitlement(self.store, account, "WEEKLY", NOW)
        self.assertEqual(decision.reason, REASON_SUBSCRIPTION_EXPIRED)

    def test_expired_account_may_still_use_free_features(self) -> None:
        account = _stored(self.store, tier="WEEKLY", subscription_expiry=NOW - timedelta(days=1))
        self.assertTrue(check_entitlement(self.store, account, "FREE", NOW).allowed)
        self.assertEqual(self.store.find_by_id(account.id).tier, "WEEKLY")

    def test_downgrade_goes_through_store(self) -> None:
        store = MagicMock()
        store.downgrade_if_expired.return_value = True
        account = _account(tier="MONTHLY", subscription_expiry=NOW - timedelta(hours=1))
        check_entitlement(store, account, "MONTHLY", NOW)
        store.downgrade_if_expired.assert_called_once_with("acc-1", NOW)

    def test_require_entitlement_raises_structured_error(self) -> None:
        account = _stored(self.store)
        with self.assertRaises(EntitlementError) as ctx:
            require_entitlement(self.store, account, "MONTHLY", NOW)
        payload = ctx.exception.to_payload()
        self.assertEqual(payload["error"], REASON_SUBSCRIPTION_REQUIRED)
        self.assertEqual(payload["requiredTier"], "MONTHLY")
        self.assertEqual(payload["currentTier"], "FREE")
        self.assertEqual(ctx.exception.status_code, 402)


class TestTiers(unittest.TestCase):
    def test_effective_tier_of_lapsed_account_is_free(self) -> None:
        account = _account(tier="WEEKLY", subscription_expiry=NOW - timedelta(minutes=1))
        self.assertEqual(effective_tier(account, NOW), "FREE")
        self.assertEqual(account.tier, "WEEKLY")

    def test_higher_tier(self) -> None:
        self.assertEqual(higher_tier("FREE", "WEEKLY"), "WEEKLY")
        self.assertEqual(higher_tier("MONTHLY", "WEEKLY"), "MONTHLY")
        self.assertEqual(higher_tier("FREE", "FREE"), "FREE")


class TestTruncation(unittest.TestCase):
    def setUp(self) -> None:
        self.items = [f"alert-{i}" for i in range(10, 0, -1)]

    def test_free_account_gets_first_three(self) -> None:
        result = truncate_for_tier(self.items, _account(), 3, NOW)
        self.assertEqual(result, ["alert-10", "alert-9", "alert-8"])

    def test_paid_account_gets_everything(self) -> None:
        account = _account(tier="MONTHLY", subscription_expiry=NOW + timedelta(days=10))
        self.assertEqual(truncate_for_tier(self.items, account, 3, NOW), self.items)

    def test_admin_on_free_tier_gets_everything(self) -> None:
        self.assertEqual(truncate_for_tier(self.items, _account(role="ADMIN"), 3, NOW), self.items)

    def test_lapsed_paid_account_is_truncated(self) -> None:
        account = _account(tier="WEEKLY", subscription_expiry=NOW - timedelta(days=1))
        self.assertEqual(len(truncate_for_tier(self.items, account, 3, NOW)), 3)

    def test_short_list_is_returned_whole(self) -> None:
        self.assertEqual(truncate_for_tier(["a", "b"], _account(), 3, NOW), ["a", "b"])


if __name__ == "__main__":
    unittest.main()
