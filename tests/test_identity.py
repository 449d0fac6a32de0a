"""Unit tests for cashflowops.services.identity: register, login, tokens and profile edits."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

from cashflowops.core.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from cashflowops.core.security import create_access_token, decode_access_token, verify_password
from cashflowops.scripts import create_account
from cashflowops.services import identity
from cashflowops.stores.memory import InMemoryAccountStore


def _register(store: InMemoryAccountStore, username: str = "alice", email: str = "alice@example.com"):
    return identity.register(store, username, email, "s3cret-pass")


class TestRegister(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryAccountStore()

    def test_creates_standard_free_account_with_token(self) -> None:
        account, token = _register(self.store)
        self.assertEqual(account.role, "STANDARD")
        self.assertEqual(account.tier, "FREE")
        self.assertIsNone(account.subscription_expiry)
        self.assertIsNotNone(account.last_active_at)
        self.assertEqual(decode_access_token(token)["sub"], account.id)
        self.assertEqual(self.store.find_by_id(account.id).username, "alice")

    def test_password_is_stored_hashed(self) -> None:
        account, _ = _register(self.store)
        self.assertNotEqual(account.password_hash, "s3cret-pass")
        self.assertTrue(verify_password("s3cret-pass", account.password_hash))

    def test_email_is_stored_lowercase(self) -> None:
        account, _ = _register(self.store, email="Alice@Example.COM")
        self.assertEqual(account.email, "alice@example.com")

    def test_profile_fields_are_kept(self) -> None:
        account, _ = identity.register(
            self.store, "bob", "bob@example.com", "s3cret-pass", first_name=" Bob ", last_name="Jones"
        )
        self.assertEqual(account.first_name, "Bob")
        self.assertEqual(account.last_name, "Jones")

    def test_duplicate_username_conflicts(self) -> None:
        _register(self.store)
        with self.assertRaises(ConflictError):
            _register(self.store, email="other@example.com")

    def test_duplicate_email_conflicts_case_insensitively(self) -> None:
        _register(self.store)
        with self.assertRaises(ConflictError):
            _register(self.store, username="alice2", email="ALICE@example.com")
        self.assertIsNone(self.store.find_by_username("alice2"))

    def test_missing_fields_are_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            identity.register(self.store, "", "a@example.com", "s3cret-pass")
        with self.assertRaises(ValidationError):
            identity.register(self.store, "carol", "", "s3cret-pass")
        with self.assertRaises(ValidationError):
            identity.register(self.store, "carol", "carol@example.com", "")

    def test_malformed_values_are_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            identity.register(self.store, "ab", "ab@example.com", "s3cret-pass")
        with self.assertRaises(ValidationError):
            identity.register(self.store, "carol", "not-an-email", "s3cret-pass")
        with self.assertRaises(ValidationError):
            identity.register(self.store, "carol", "carol@example.com", "short")

    def test_username_cannot_look_like_an_email(self) -> None:
        _register(self.store, username="bob", email="bob@example.com")
        with self.assertRaises(ValidationError):
            _register(self.store, username="bob@example.com", email="mallory@example.com")
        account, _ = identity.login(self.store, "bob@example.com", "s3cret-pass")
        self.assertEqual(account.username, "bob")

    def test_profile_edit_cannot_take_an_email_shaped_username(self) -> None:
        account, _ = _register(self.store)
        with self.assertRaises(ValidationError):
            identity.update_profile(self.store, account, {"username": "someone@example.com"})


class TestLogin(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryAccountStore()
        self.account, _ = _register(self.store)

    def test_login_by_username(self) -> None:
        account, token = identity.login(self.store, "alice", "s3cret-pass")
        self.assertEqual(account.id, self.account.id)
        self.assertEqual(decode_access_token(token)["sub"], self.account.id)

    def test_login_by_email_any_case(self) -> None:
        account, _ = identity.login(self.store, "ALICE@example.com", "s3cret-pass")
        self.assertEqual(account.id, self.account.id)

    def test_login_updates_last_active(self) -> None:
        before = self.store.find_by_id(self.account.id).last_active_at
        account, _ = identity.login(self.store, "alice", "s3cret-pass")
        self.assertGreaterEqual(account.last_active_at, before)

    def test_unknown_user_and_wrong_password_fail_identically(self) -> None:
        with self.assertRaises(AuthenticationError) as unknown:
            identity.login(self.store, "nobody", "s3cret-pass")
        with self.assertRaises(AuthenticationError) as wrong:
            identity.login(self.store, "alice", "wrong-password")
        self.assertEqual(unknown.exception.to_payload(), wrong.exception.to_payload())

    def test_inactive_account_cannot_login(self) -> None:
        account = self.store.find_by_id(self.account.id)
        account.is_active = False
        self.store.update(account)
        with self.assertRaises(AuthenticationError):
            identity.login(self.store, "alice", "s3cret-pass")

    def test_blank_credentials_are_validation_errors(self) -> None:
        with self.assertRaises(ValidationError):
            identity.login(self.store, "  ", "s3cret-pass")
        with self.assertRaises(ValidationError):
            identity.login(self.store, "alice", "")


class TestVerifyToken(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryAccountStore()
        self.account, self.token = _register(self.store)

    def test_valid_token_resolves_current_stored_account(self) -> None:
        stored = self.store.find_by_id(self.account.id)
        stored.tier = "MONTHLY"
        self.store.update(stored)
        account = identity.verify_token(self.store, self.token)
        self.assertEqual(account.tier, "MONTHLY")

    def test_garbage_token_is_rejected(self) -> None:
        with self.assertRaises(AuthenticationError):
            identity.verify_token(self.store, "not.a.jwt")

    def test_expired_token_is_rejected(self) -> None:
        token = create_access_token(
            self.account.id, now=datetime.now(UTC) - timedelta(hours=1), expire_minutes=1
        )
        with self.assertRaises(AuthenticationError):
            identity.verify_token(self.store, token)

    def test_token_for_unknown_account_is_rejected(self) -> None:
        with self.assertRaises(AuthenticationError):
            identity.verify_token(self.store, create_access_token("missing-id"))

    def test_refresh_issues_token_for_same_account(self) -> None:
        token = identity.refresh_token(self.account)
        self.assertEqual(decode_access_token(token)["sub"], self.account.id)


class TestProfile(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryAccountStore()
        self.alice, _ = _register(self.store)
        self.bob, _ = _register(self.store, username="bob", email="bob@example.com")

    def test_updates_fields_and_returns_token(self) -> None:
        account, token = identity.update_profile(
            self.store, self.alice, {"first_name": "Alice", "bio": " trader ", "phone": None}
        )
        self.assertEqual(account.first_name, "Alice")
        self.assertEqual(account.bio, "trader")
        self.assertEqual(account.phone, "")
        self.assertEqual(decode_access_token(token)["sub"], self.alice.id)

    def test_taken_username_conflicts(self) -> None:
        with self.assertRaises(ConflictError):
            identity.update_profile(self.store, self.alice, {"username": "bob"})

    def test_taken_email_conflicts(self) -> None:
        with self.assertRaises(ConflictError):
            identity.update_profile(self.store, self.alice, {"email": "BOB@example.com"})

    def test_keeping_own_email_is_allowed(self) -> None:
        account, _ = identity.update_profile(self.store, self.alice, {"email": "alice@example.com"})
        self.assertEqual(account.email, "alice@example.com")

    def test_get_account_not_found(self) -> None:
        with self.assertRaises(NotFoundError):
            identity.get_account(self.store, "missing-id")


class TestCreateAccountScript(unittest.TestCase):
    """The CLI registers through the identity service and applies the requested role."""

    def test_creates_admin(self) -> None:
        store = InMemoryAccountStore()
        with patch.object(create_account, "SessionLocal", MagicMock()), patch.object(
            create_account, "SqlAccountStore", return_value=store
        ):
            code = create_account.main(["root", "root@example.com", "s3cret-pass", "ADMIN"])
        self.assertEqual(code, 0)
        self.assertEqual(store.find_by_username("root").role, "ADMIN")

    def test_duplicate_returns_error_code(self) -> None:
        store = InMemoryAccountStore()
        _register(store, username="root", email="root@example.com")
        with patch.object(create_account, "SessionLocal", MagicMock()), patch.object(
            create_account, "SqlAccountStore", return_value=store
        ):
            code = create_account.main(["root", "root@example.com", "s3cret-pass"])
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
