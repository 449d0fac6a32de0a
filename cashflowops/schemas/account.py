"""Pydantic schemas for accounts: the stored domain record and its public shapes."""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

# Subscription tiers in ascending order of access. FREE is the default and the expiry fallback.
Tier = Literal["FREE", "WEEKLY", "MONTHLY"]
Role = Literal["STANDARD", "ADMIN"]

PROFILE_FIELD_MAX_LENGTH = 255
BIO_MAX_LENGTH = 2_000


def _as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


class CamelModel(BaseModel):
    """Base for wire schemas: camelCase JSON, snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Account(BaseModel):
    """
    Stored account record, independent of the backing store.

    Invariant: tier != FREE implies role == ADMIN or subscription_expiry is unset or in the future.
    Enforced lazily by the entitlement check and in bulk by the expiry sweep.
    """

    model_config = ConfigDict(from_attributes=True, validate_assignment=True)

    id: str
    username: str
    email: str
    password_hash: str
    role: Role = "STANDARD"
    tier: Tier = "FREE"
    subscription_expiry: datetime | None = None
    last_active_at: datetime | None = None
    is_active: bool = True
    first_name: str = ""
    last_name: str = ""
    bio: str = ""
    phone: str = ""
    location: str = ""
    website: str = ""
    avatar_url: str | None = None
    billing_customer_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("subscription_expiry", "last_active_at", "created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"


class AccountOut(CamelModel):
    """Account as returned to its owner (no password hash, no billing ids)."""

    id: str
    username: str
    email: str
    role: Role
    tier: Tier
    subscription_expiry: datetime | None = None
    last_active_at: datetime | None = None
    is_active: bool
    first_name: str
    last_name: str
    bio: str
    phone: str
    location: str
    website: str
    avatar_url: str | None = None
    created_at: datetime
    updated_at: datetime

    @computed_field(alias="isAdmin")
    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"


class PublicProfile(CamelModel):
    """Profile fields visible to other authenticated accounts."""

    id: str
    username: str
    first_name: str
    last_name: str
    bio: str
    location: str
    website: str
    avatar_url: str | None = None
    tier: Tier
    is_active: bool
    created_at: datetime


class ActiveAccountItem(CamelModel):
    """Entry in the active-users listing."""

    id: str
    username: str
    tier: Tier
    avatar_url: str | None = None
    last_active_at: datetime | None = None


class AccountEnvelope(CamelModel):
    account: AccountOut


class PublicProfileEnvelope(CamelModel):
    user: PublicProfile


class ProfileUpdateRequest(CamelModel):
    """Body for PUT /profile. Omitted fields keep their current value."""

    model_config = ConfigDict(extra="ignore")

    username: str | None = Field(
        default=None,
        min_length=1,
        max_length=PROFILE_FIELD_MAX_LENGTH,
        description="New username; must not belong to another account.",
    )
    email: str | None = Field(
        default=None,
        min_length=3,
        max_length=PROFILE_FIELD_MAX_LENGTH,
        description="New email; compared case-insensitively against other accounts.",
    )
    first_name: str | None = Field(default=None, max_length=PROFILE_FIELD_MAX_LENGTH)
    last_name: str | None = Field(default=None, max_length=PROFILE_FIELD_MAX_LENGTH)
    bio: str | None = Field(default=None, max_length=BIO_MAX_LENGTH)
    phone: str | None = Field(default=None, max_length=64)
    location: str | None = Field(default=None, max_length=PROFILE_FIELD_MAX_LENGTH)
    website: str | None = Field(default=None, max_length=PROFILE_FIELD_MAX_LENGTH)


class AvatarResponse(CamelModel):
    avatar_url: str
    account: AccountOut
