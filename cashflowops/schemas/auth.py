"""Request/response schemas for auth endpoints."""

from pydantic import AliasChoices, Field

from cashflowops.schemas.account import AccountOut, CamelModel


class RegisterRequest(CamelModel):
    """Credentials and optional profile fields for registration."""

    username: str = Field(..., description="Unique username")
    email: str = Field(..., description="Unique email (case-insensitive)")
    password: str = Field(..., description="Password (minimum length is configurable)")
    first_name: str = Field(default="", max_length=255)
    last_name: str = Field(default="", max_length=255)


class LoginRequest(CamelModel):
    """Credentials for login. The identifier may be a username or an email."""

    username_or_email: str = Field(
        ...,
        validation_alias=AliasChoices("usernameOrEmail", "username_or_email", "username", "email"),
        description="Username or email",
    )
    password: str = Field(..., description="Password")


class TokenResponse(CamelModel):
    """Signed session token plus the account it was issued for."""

    token: str = Field(..., description="JWT access token; send as Authorization: Bearer <token>")
    token_type: str = Field(default="bearer", description="Token type")
    account: AccountOut
