"""Identity and credentials: registration, login, token verification and profile edits.

Storage-agnostic: every operation takes an AccountStore. Tokens are stateless JWTs
(see core.security); verify_token always resolves to the current stored account, so
role and tier changes apply on the next request.
"""

import logging
import re
import uuid
from datetime import UTC, datetime
from typing import Any

import jwt

from cashflowops.core.config import settings
from cashflowops.core.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from cashflowops.core.security import (
    PASSWORD_MAX_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from cashflowops.schemas.account import Account
from cashflowops.stores.base import AccountStore, normalize_email

logger = logging.getLogger(__name__)

# One "@", something on each side, a dot in the domain.
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_TOKEN = "Invalid or expired token"

PROFILE_TEXT_FIELDS = ("first_name", "last_name", "bio", "phone", "location", "website")


def _now() -> datetime:
    return datetime.now(UTC)


def _validate_username(username: str | None) -> str:
    value = (username or "").strip()
    if not value:
        raise ValidationError("Username is required.")
    if not (USERNAME_MIN_LEN <= len(value) <= USERNAME_MAX_LEN):
        raise ValidationError(
            f"Username must be {USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} characters."
        )
    if "@" in value:
        # Login treats an identifier with "@" as a possible email.
        raise ValidationError("Username must not contain \"@\".")
    return value


def _validate_email(email: str | None) -> str:
    value = normalize_email(email or "")
    if not value:
        raise ValidationError("Email is required.")
    if len(value) > 255 or not EMAIL_PATTERN.match(value):
        raise ValidationError("Email address is not valid.")
    return value


def _validate_password(password: str | None) -> str:
    if not password:
        raise ValidationError("Password is required.")
    if not (settings.PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LEN):
        raise ValidationError(
            f"Password must be {settings.PASSWORD_MIN_LENGTH}-{PASSWORD_MAX_LEN} characters."
        )
    return password


def _ensure_identifiers_free(
    store: AccountStore, username: str, email: str, *, account_id: str | None = None
) -> None:
    """Raise ConflictError if username or email belongs to an account other than account_id."""
    by_username = store.find_by_username(username)
    if by_username is not None and by_username.id != account_id:
        raise ConflictError("Username or email already exists")
    by_email = store.find_by_email(email)
    if by_email is not None and by_email.id != account_id:
        raise ConflictError("Username or email already exists")


def issue_token(account: Account) -> str:
    return create_access_token(account.id)


def register(
    store: AccountStore,
    username: str,
    email: str,
    password: str,
    **profile: Any,
) -> tuple[Account, str]:
    """
    Create a STANDARD/FREE account and return it with a fresh token.

    Raises ValidationError for missing or malformed fields and ConflictError when the
    username or (case-insensitive) email is taken.
    """
    username = _validate_username(username)
    email = _validate_email(email)
    password = _validate_password(password)
    _ensure_identifiers_free(store, username, email)

    now = _now()
    account = Account(
        id=uuid.uuid4().hex,
        username=username,
        email=email,
        password_hash=hash_password(password),
        last_active_at=now,
        created_at=now,
        updated_at=now,
        **{k: (profile.get(k) or "").strip() for k in PROFILE_TEXT_FIELDS if k in profile},
    )
    account = store.insert(account)
    logger.info("Registered account id=%s username=%s", account.id, account.username)
    return account, issue_token(account)


def _lookup(store: AccountStore, identifier: str) -> Account | None:
    account = store.find_by_username(identifier)
    if account is None and "@" in identifier:
        account = store.find_by_email(identifier)
    return account


def login(store: AccountStore, username_or_email: str, password: str) -> tuple[Account, str]:
    """
    Authenticate by username or email. Unknown identifier, inactive account and wrong
    password all raise the same AuthenticationError.
    """
    identifier = (username_or_email or "").strip()
    if not identifier or not password:
        raise ValidationError("Username or email and password are required.")

    account = _lookup(store, identifier)
    if account is None or not account.is_active or not verify_password(password, account.password_hash):
        logger.info("Failed login attempt for identifier=%s", identifier)
        raise AuthenticationError(INVALID_CREDENTIALS)

    now = _now()
    store.record_activity(account.id, now)
    account.last_active_at = now
    return account, issue_token(account)


def verify_token(store: AccountStore, token: str) -> Account:
    """Check signature and expiry, then return the current stored account."""
    if not token:
        raise AuthenticationError(INVALID_TOKEN)
    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        logger.debug("Token rejected: expired")
        raise AuthenticationError(INVALID_TOKEN)
    except jwt.InvalidSignatureError:
        logger.warning("Token rejected: signature mismatch")
        raise AuthenticationError(INVALID_TOKEN)
    except jwt.PyJWTError as e:
        logger.debug("Token rejected: %s", e)
        raise AuthenticationError(INVALID_TOKEN)

    sub = payload.get("sub")
    if not sub or not isinstance(sub, str):
        logger.debug("Token rejected: missing subject")
        raise AuthenticationError(INVALID_TOKEN)
    account = store.find_by_id(sub)
    if account is None or not account.is_active:
        logger.debug("Token rejected: account %s missing or inactive", sub)
        raise AuthenticationError(INVALID_TOKEN)
    return account


def refresh_token(account: Account) -> str:
    """Issue a new token for the same account with a fresh expiry window."""
    return issue_token(account)


def touch(store: AccountStore, account: Account, now: datetime | None = None) -> Account:
    """Record activity on an authenticated request. Writes last_active_at only."""
    now = now or _now()
    store.record_activity(account.id, now)
    account.last_active_at = now
    return account


def update_profile(store: AccountStore, account: Account, changes: dict[str, Any]) -> tuple[Account, str]:
    """
    Apply username/email/profile-field changes. None values are ignored.

    Returns the updated account and a fresh token.
    """
    username = account.username
    email = account.email
    if changes.get("username") is not None:
        username = _validate_username(changes["username"])
    if changes.get("email") is not None:
        email = _validate_email(changes["email"])
    if username != account.username or email != normalize_email(account.email):
        _ensure_identifiers_free(store, username, email, account_id=account.id)

    fields: dict[str, Any] = {"username": username, "email": email, "updated_at": _now()}
    for field in PROFILE_TEXT_FIELDS:
        if changes.get(field) is not None:
            fields[field] = changes[field].strip()
    account = store.update_fields(account.id, **fields)
    logger.info("Updated profile for account id=%s", account.id)
    return account, issue_token(account)


def get_account(store: AccountStore, account_id: str) -> Account:
    account = store.find_by_id(account_id)
    if account is None:
        raise NotFoundError("User not found")
    return account
