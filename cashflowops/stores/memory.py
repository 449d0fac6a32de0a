"""In-memory stores keyed by id. Thread-safe; returns copies so callers never alias stored state."""

import threading
from datetime import datetime
from typing import Any

from cashflowops.core.errors import ConflictError, NotFoundError
from cashflowops.schemas.account import Account
from cashflowops.schemas.alert import Alert
from cashflowops.schemas.strategy import Strategy
from cashflowops.stores.base import normalize_email


class InMemoryAccountStore:
    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._lock = threading.Lock()

    def _find(self, predicate) -> Account | None:
        with self._lock:
            for account in self._accounts.values():
                if predicate(account):
                    return account.model_copy()
        return None

    def _check_unique(self, account: Account) -> None:
        for other in self._accounts.values():
            if other.id == account.id:
                continue
            if other.username == account.username:
                raise ConflictError("Username already exists")
            if normalize_email(other.email) == normalize_email(account.email):
                raise ConflictError("Email already exists")
            if (
                account.billing_customer_id
                and other.billing_customer_id == account.billing_customer_id
            ):
                raise ConflictError("Billing customer already linked to another account")

    def find_by_id(self, account_id: str) -> Account | None:
        with self._lock:
            account = self._accounts.get(account_id)
            return account.model_copy() if account else None

    def find_by_username(self, username: str) -> Account | None:
        return self._find(lambda a: a.username == username)

    def find_by_email(self, email: str) -> Account | None:
        wanted = normalize_email(email)
        return self._find(lambda a: normalize_email(a.email) == wanted)

    def find_by_billing_customer(self, customer_id: str) -> Account | None:
        if not customer_id:
            return None
        return self._find(lambda a: a.billing_customer_id == customer_id)

    def insert(self, account: Account) -> Account:
        stored = account.model_copy(update={"email": normalize_email(account.email)})
        with self._lock:
            if stored.id in self._accounts:
                raise ConflictError("Account id already exists")
            self._check_unique(stored)
            self._accounts[stored.id] = stored
        return stored.model_copy()

    def update(self, account: Account) -> Account:
        stored = account.model_copy(update={"email": normalize_email(account.email)})
        with self._lock:
            if stored.id not in self._accounts:
                raise NotFoundError("Account not found")
            self._check_unique(stored)
            self._accounts[stored.id] = stored
        return stored.model_copy()

    def update_fields(self, account_id: str, **fields: Any) -> Account:
        if "email" in fields:
            fields["email"] = normalize_email(fields["email"])
        with self._lock:
            current = self._accounts.get(account_id)
            if current is None:
                raise NotFoundError("Account not found")
            stored = current.model_copy(update=fields)
            self._check_unique(stored)
            self._accounts[account_id] = stored
        return stored.model_copy()

    def record_activity(self, account_id: str, now: datetime) -> bool:
        with self._lock:
            current = self._accounts.get(account_id)
            if current is None:
                return False
            self._accounts[account_id] = current.model_copy(update={"last_active_at": now})
            return True

    def list_active_since(self, since: datetime, limit: int) -> list[Account]:
        with self._lock:
            recent = [
                a.model_copy()
                for a in self._accounts.values()
                if a.is_active and a.last_active_at is not None and a.last_active_at >= since
            ]
        recent.sort(key=lambda a: a.last_active_at, reverse=True)
        return recent[:limit]

    def _is_expired(self, account: Account, now: datetime) -> bool:
        return (
            account.role != "ADMIN"
            and account.tier != "FREE"
            and account.subscription_expiry is not None
            and account.subscription_expiry <= now
        )

    def downgrade_if_expired(self, account_id: str, now: datetime) -> bool:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None or not self._is_expired(account, now):
                return False
            self._accounts[account_id] = account.model_copy(update={"tier": "FREE", "updated_at": now})
            return True

    def downgrade_all_expired(self, now: datetime) -> int:
        with self._lock:
            expired = [a for a in self._accounts.values() if self._is_expired(a, now)]
            for account in expired:
                self._accounts[account.id] = account.model_copy(update={"tier": "FREE", "updated_at": now})
            return len(expired)


class InMemoryAlertStore:
    def __init__(self) -> None:
        self._alerts: dict[str, Alert] = {}
        self._lock = threading.Lock()

    def find_by_id(self, alert_id: str) -> Alert | None:
        with self._lock:
            alert = self._alerts.get(alert_id)
            return alert.model_copy() if alert else None

    def insert(self, alert: Alert) -> Alert:
        with self._lock:
            if alert.id in self._alerts:
                raise ConflictError("Alert id already exists")
            self._alerts[alert.id] = alert.model_copy()
        return alert.model_copy()

    def update_fields(self, alert_id: str, **fields: Any) -> Alert | None:
        with self._lock:
            current = self._alerts.get(alert_id)
            if current is None:
                return None
            self._alerts[alert_id] = current.model_copy(update=fields)
            return self._alerts[alert_id].model_copy()

    def delete(self, alert_id: str) -> Alert | None:
        with self._lock:
            alert = self._alerts.pop(alert_id, None)
        return alert.model_copy() if alert else None

    def list_recent(
        self,
        *,
        category: str | None = None,
        priority: str | None = None,
        status: str | None = None,
        limit: int | None = None,
    ) -> list[Alert]:
        with self._lock:
            alerts = [
                a.model_copy()
                for a in self._alerts.values()
                if (category is None or a.category == category)
                and (priority is None or a.priority == priority)
                and (a.status == status if status is not None else a.status != "ARCHIVED")
            ]
        alerts.sort(key=lambda a: a.created_at, reverse=True)
        return alerts if limit is None else alerts[:limit]


class InMemoryStrategyStore:
    def __init__(self) -> None:
        self._strategies: dict[str, Strategy] = {}
        self._lock = threading.Lock()

    def insert(self, strategy: Strategy) -> Strategy:
        with self._lock:
            if strategy.id in self._strategies:
                raise ConflictError("Strategy id already exists")
            self._strategies[strategy.id] = strategy.model_copy(deep=True)
        return strategy.model_copy(deep=True)

    def list_active(self, limit: int | None = None) -> list[Strategy]:
        with self._lock:
            strategies = [s.model_copy(deep=True) for s in self._strategies.values() if s.is_active]
        strategies.sort(key=lambda s: s.created_at, reverse=True)
        return strategies if limit is None else strategies[:limit]
