"""Registration, login and token endpoints, plus the auth dependencies (get_current_account, require_admin)."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from cashflowops.api.deps import get_account_store
from cashflowops.core.errors import AuthenticationError, ForbiddenError
from cashflowops.schemas.account import Account, AccountEnvelope, AccountOut
from cashflowops.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from cashflowops.services import identity
from cashflowops.stores.base import AccountStore

router = APIRouter()
security = HTTPBearer(auto_error=False)


def _token_response(account: Account, token: str) -> TokenResponse:
    return TokenResponse(token=token, account=AccountOut.model_validate(account))


def get_current_account(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    store: Annotated[AccountStore, Depends(get_account_store)],
) -> Account:
    """Dependency: require a valid Bearer JWT, record activity and return the stored account. 401 otherwise."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated")
    account = identity.verify_token(store, credentials.credentials)
    return identity.touch(store, account)


def require_admin(
    current: Annotated[Account, Depends(get_current_account)],
) -> Account:
    """Dependency: require an authenticated ADMIN account. Raises 403 otherwise."""
    if not current.is_admin:
        raise ForbiddenError("Admin access required")
    return current


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    store: Annotated[AccountStore, Depends(get_account_store)],
) -> TokenResponse:
    """
    Create an account and return a JWT access token for it.
    Include the token in the Authorization header as: Bearer <token>
    """
    account, token = identity.register(
        store,
        body.username,
        body.email,
        body.password,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    return _token_response(account, token)


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    store: Annotated[AccountStore, Depends(get_account_store)],
) -> TokenResponse:
    """Authenticate with username or email and password; returns a JWT access token."""
    account, token = identity.login(store, body.username_or_email, body.password)
    return _token_response(account, token)


@router.get("/profile", response_model=AccountEnvelope)
def get_profile(
    current: Annotated[Account, Depends(get_current_account)],
) -> AccountEnvelope:
    """Return the authenticated account as currently stored."""
    return AccountEnvelope(account=AccountOut.model_validate(current))


@router.post("/refresh", response_model=TokenResponse)
def refresh(
    current: Annotated[Account, Depends(get_current_account)],
) -> TokenResponse:
    """Issue a new token with a fresh expiry window for the authenticated account."""
    return _token_response(current, identity.refresh_token(current))
