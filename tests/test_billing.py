"""Stripe billing: checkout sessions, webhook signature checks and subscription events."""

import hashlib
import hmac
import json
import time
import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

import stripe

from cashflowops.core.config import Settings
from cashflowops.core.errors import ServiceUnavailableError, ValidationError
from cashflowops.schemas.account import Account
from cashflowops.services.billing import apply_billing_event, create_checkout_session, verify_webhook
from cashflowops.stores.memory import InMemoryAccountStore

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)
WEBHOOK_SECRET = "whsec_test_secret"


def _settings(**overrides: object) -> Settings:
    values = {
        "STRIPE_SECRET_KEY": "sk_test_123",
        "STRIPE_WEBHOOK_SECRET": WEBHOOK_SECRET,
        "STRIPE_PRICE_WEEKLY": "price_weekly",
        "STRIPE_PRICE_MONTHLY": "price_monthly",
    }
    values.update(overrides)
    return Settings(**values)


def _account(**kwargs: object) -> Account:
    defaults = {"username": "alice", "email": "alice@example.com", "password_hash": "x"}
    defaults.update(kwargs)
    return Account(id="acc-1", **defaults)


def _sign(payload: str, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def _subscription_event(event_type: str, **obj: object) -> dict:
    subscription = {
        "id": "sub_1",
        "customer": "cus_1",
        "status": "active",
        "metadata": {"account_id": "acc-1"},
        "current_period_end": int((NOW + timedelta(days=30)).timestamp()),
        "items": {"data": [{"price": {"id": "price_monthly"}}]},
    }
    subscription.update(obj)
    return {"id": "evt_1", "type": event_type, "data": {"object": subscription}}


class TestCheckout(unittest.TestCase):
    def test_returns_session_url(self) -> None:
        with patch("stripe.checkout.Session.create", return_value=MagicMock(url="https://pay.test/s")) as create:
            url = create_checkout_session(_settings(), _account(), "WEEKLY")
        self.assertEqual(url, "https://pay.test/s")
        kwargs = create.call_args.kwargs
        self.assertEqual(kwargs["api_key"], "sk_test_123")
        self.assertEqual(kwargs["mode"], "subscription")
        self.assertEqual(kwargs["line_items"], [{"price": "price_weekly", "quantity": 1}])
        self.assertEqual(kwargs["client_reference_id"], "acc-1")
        self.assertEqual(kwargs["customer_email"], "alice@example.com")

    def test_existing_customer_is_reused(self) -> None:
        with patch("stripe.checkout.Session.create", return_value=MagicMock(url="https://pay.test/s")) as create:
            create_checkout_session(_settings(), _account(billing_customer_id="cus_9"), "MONTHLY")
        self.assertEqual(create.call_args.kwargs["customer"], "cus_9")
        self.assertNotIn("customer_email", create.call_args.kwargs)

    def test_unconfigured_billing_is_unavailable(self) -> None:
        with self.assertRaises(ServiceUnavailableError):
            create_checkout_session(_settings(STRIPE_SECRET_KEY=""), _account(), "WEEKLY")
        with self.assertRaises(ServiceUnavailableError):
            create_checkout_session(_settings(STRIPE_PRICE_MONTHLY=""), _account(), "MONTHLY")

    def test_provider_error_is_unavailable(self) -> None:
        with patch("stripe.checkout.Session.create", side_effect=stripe.StripeError("down")):
            with self.assertRaises(ServiceUnavailableError):
                create_checkout_session(_settings(), _account(), "WEEKLY")


class TestVerifyWebhook(unittest.TestCase):
    def test_valid_signature_returns_event(self) -> None:
        payload = json.dumps({"id": "evt_1", "type": "customer.subscription.updated"})
        event = verify_webhook(_settings(), payload.encode("utf-8"), _sign(payload))
        self.assertEqual(event["type"], "customer.subscription.updated")

    def test_bad_signature_is_rejected(self) -> None:
        payload = json.dumps({"id": "evt_1"})
        with self.assertRaises(ValidationError):
            verify_webhook(_settings(), payload.encode("utf-8"), _sign(payload, secret="whsec_other"))

    def test_missing_signature_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            verify_webhook(_settings(), b"{}", None)

    def test_missing_secret_is_unavailable(self) -> None:
        with self.assertRaises(ServiceUnavailableError):
            verify_webhook(_settings(STRIPE_WEBHOOK_SECRET=""), b"{}", "t=1,v1=abc")


class TestApplyBillingEvent(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryAccountStore()
        self.store.insert(_account())
        self.settings = _settings()

    def test_subscription_sets_tier_and_expiry(self) -> None:
        applied = apply_billing_event(
            self.store, self.settings, _subscription_event("customer.subscription.created"), NOW
        )
        self.assertTrue(applied)
        account = self.store.find_by_id("acc-1")
        self.assertEqual(account.tier, "MONTHLY")
        self.assertEqual(account.subscription_expiry, NOW + timedelta(days=30))
        self.assertEqual(account.billing_customer_id, "cus_1")

    def test_period_end_on_subscription_item(self) -> None:
        end = int((NOW + timedelta(days=7)).timestamp())
        event = _subscription_event(
            "customer.subscription.updated",
            current_period_end=None,
            items={"data": [{"price": {"id": "price_weekly"}, "current_period_end": end}]},
        )
        apply_billing_event(self.store, self.settings, event, NOW)
        account = self.store.find_by_id("acc-1")
        self.assertEqual(account.tier, "WEEKLY")
        self.assertEqual(account.subscription_expiry, NOW + timedelta(days=7))

    def test_replayed_event_converges(self) -> None:
        event = _subscription_event("customer.subscription.updated")
        apply_billing_event(self.store, self.settings, event, NOW)
        first = self.store.find_by_id("acc-1")
        apply_billing_event(self.store, self.settings, event, NOW)
        second = self.store.find_by_id("acc-1")
        self.assertEqual((first.tier, first.subscription_expiry), (second.tier, second.subscription_expiry))

    def test_deleted_subscription_downgrades(self) -> None:
        apply_billing_event(self.store, self.settings, _subscription_event("customer.subscription.created"), NOW)
        apply_billing_event(
            self.store, self.settings, _subscription_event("customer.subscription.deleted", ended_at=None), NOW
        )
        account = self.store.find_by_id("acc-1")
        self.assertEqual(account.tier, "FREE")
        self.assertEqual(account.subscription_expiry, NOW)

    def test_unpaid_status_downgrades(self) -> None:
        apply_billing_event(
            self.store, self.settings, _subscription_event("customer.subscription.updated", status="unpaid"), NOW
        )
        self.assertEqual(self.store.find_by_id("acc-1").tier, "FREE")

    def test_lookup_by_customer_id(self) -> None:
        account = self.store.find_by_id("acc-1")
        account.billing_customer_id = "cus_1"
        self.store.update(account)
        event = _subscription_event("customer.subscription.updated", metadata={})
        self.assertTrue(apply_billing_event(self.store, self.settings, event, NOW))
        self.assertEqual(self.store.find_by_id("acc-1").tier, "MONTHLY")

    def test_unknown_price_is_ignored(self) -> None:
        event = _subscription_event(
            "customer.subscription.updated", items={"data": [{"price": {"id": "price_other"}}]}
        )
        self.assertFalse(apply_billing_event(self.store, self.settings, event, NOW))
        self.assertEqual(self.store.find_by_id("acc-1").tier, "FREE")

    def test_checkout_completed_links_customer(self) -> None:
        event = {
            "type": "checkout.session.completed",
            "data": {"object": {"client_reference_id": "acc-1", "customer": "cus_7"}},
        }
        self.assertTrue(apply_billing_event(self.store, self.settings, event, NOW))
        self.assertEqual(self.store.find_by_id("acc-1").billing_customer_id, "cus_7")

    def test_unrelated_event_types_are_ignored(self) -> None:
        self.assertFalse(apply_billing_event(self.store, self.settings, {"type": "invoice.paid"}, NOW))

    def test_unmapped_account_is_ignored(self) -> None:
        event = _subscription_event("customer.subscription.updated", metadata={}, customer="cus_unknown")
        self.assertFalse(apply_billing_event(self.store, self.settings, event, NOW))


if __name__ == "__main__":
    unittest.main()
