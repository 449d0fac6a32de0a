"""Storage interfaces for accounts, alerts and trading strategies.

Services depend only on these protocols; the API injects a concrete store
(SQLAlchemy in production, in-memory in tests and local runs).
"""

from datetime import datetime
from typing import Any, Protocol

from cashflowops.schemas.account import Account
from cashflowops.schemas.alert import Alert
from cashflowops.schemas.strategy import Strategy


def normalize_email(email: str) -> str:
    """Emails are unique case-insensitively; stores keep and compare the lower-cased form."""
    return (email or "").strip().lower()


class AccountStore(Protocol):
    def find_by_id(self, account_id: str) -> Account | None: ...

    def find_by_username(self, username: str) -> Account | None: ...

    def find_by_email(self, email: str) -> Account | None: ...

    def find_by_billing_customer(self, customer_id: str) -> Account | None: ...

    def insert(self, account: Account) -> Account:
        """Persist a new account. Raises ConflictError on a username/email/customer clash."""
        ...

    def update(self, account: Account) -> Account:
        """Overwrite the stored account. Raises ConflictError on a clash, NotFoundError if absent."""
        ...

    def update_fields(self, account_id: str, **fields: Any) -> Account:
        """
        Write only the named fields and return the stored account. Other columns keep
        whatever a concurrent writer put there. Same errors as update().
        """
        ...

    def record_activity(self, account_id: str, now: datetime) -> bool:
        """Set last_active_at and nothing else. Returns False when the account is absent."""
        ...

    def list_active_since(self, since: datetime, limit: int) -> list[Account]:
        """Active accounts seen at or after since, most recently active first."""
        ...

    def downgrade_if_expired(self, account_id: str, now: datetime) -> bool:
        """
        Atomically set tier to FREE when the account is a non-admin on a paid tier whose
        subscription_expiry is at or before now. Returns True if a row changed.
        """
        ...

    def downgrade_all_expired(self, now: datetime) -> int:
        """Bulk version of downgrade_if_expired. Returns the number of accounts changed."""
        ...


class AlertStore(Protocol):
    def find_by_id(self, alert_id: str) -> Alert | None: ...

    def insert(self, alert: Alert) -> Alert: ...

    def update_fields(self, alert_id: str, **fields: Any) -> Alert | None:
        """Write only the named fields. Returns the stored alert, or None when absent."""
        ...

    def delete(self, alert_id: str) -> Alert | None:
        """Remove and return the alert, or None when absent."""
        ...

    def list_recent(
        self,
        *,
        category: str | None = None,
        priority: str | None = None,
        status: str | None = None,
        limit: int | None = None,
    ) -> list[Alert]:
        """Alerts newest first, optionally filtered. Without a status filter ARCHIVED alerts are left out."""
        ...


class StrategyStore(Protocol):
    def insert(self, strategy: Strategy) -> Strategy: ...

    def list_active(self, limit: int | None = None) -> list[Strategy]:
        """Active strategies, newest first."""
        ...
