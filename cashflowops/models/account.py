"""ORM model for application accounts (auth, RBAC and subscription tier)."""

from sqlalchemy import Boolean, Column, DateTime, String, Text, func

from cashflowops.models.base import Base


class AccountRow(Base):
    """
    Account for JWT authentication, role-based access and tier entitlement.

    role: 'STANDARD' or 'ADMIN'; tier: 'FREE', 'WEEKLY' or 'MONTHLY'.
    email is stored lower-cased so the unique index is case-insensitive.
    """

    __tablename__ = "accounts"

    id = Column(String(32), primary_key=True)
    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False, default="STANDARD")
    tier = Column(String(16), nullable=False, default="FREE", index=True)
    subscription_expiry = Column(DateTime(timezone=True), nullable=True, index=True)
    last_active_at = Column(DateTime(timezone=True), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    first_name = Column(String(255), nullable=False, default="")
    last_name = Column(String(255), nullable=False, default="")
    bio = Column(Text, nullable=False, default="")
    phone = Column(String(64), nullable=False, default="")
    location = Column(String(255), nullable=False, default="")
    website = Column(String(255), nullable=False, default="")
    avatar_url = Column(String(1024), nullable=True)
    billing_customer_id = Column(String(255), nullable=True, unique=True, index=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
