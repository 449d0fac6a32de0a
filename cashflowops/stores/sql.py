"""SQLAlchemy-backed stores. One store instance per request-scoped Session."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cashflowops.core.errors import ConflictError, NotFoundError
from cashflowops.models import AccountRow, AlertRow, StrategyRow
from cashflowops.schemas.account import Account
from cashflowops.schemas.alert import Alert
from cashflowops.schemas.strategy import Strategy
from cashflowops.stores.base import normalize_email

logger = logging.getLogger(__name__)

_ACCOUNT_FIELDS = tuple(Account.model_fields)


def _expired_clause(now: datetime):
    return (
        (AccountRow.role != "ADMIN")
        & (AccountRow.tier != "FREE")
        & AccountRow.subscription_expiry.is_not(None)
        & (AccountRow.subscription_expiry <= now)
    )


class SqlAccountStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _one(self, stmt) -> Account | None:
        row = self.session.execute(stmt).scalar_one_or_none()
        return Account.model_validate(row) if row is not None else None

    def _commit_or_conflict(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.info("Account write rejected by unique constraint: %s", e.orig)
            raise ConflictError("Username or email already exists") from e

    def find_by_id(self, account_id: str) -> Account | None:
        return self._one(select(AccountRow).where(AccountRow.id == account_id))

    def find_by_username(self, username: str) -> Account | None:
        return self._one(select(AccountRow).where(AccountRow.username == username))

    def find_by_email(self, email: str) -> Account | None:
        return self._one(select(AccountRow).where(AccountRow.email == normalize_email(email)))

    def find_by_billing_customer(self, customer_id: str) -> Account | None:
        if not customer_id:
            return None
        return self._one(select(AccountRow).where(AccountRow.billing_customer_id == customer_id))

    def insert(self, account: Account) -> Account:
        values = account.model_dump()
        values["email"] = normalize_email(account.email)
        row = AccountRow(**values)
        self.session.add(row)
        self._commit_or_conflict()
        self.session.refresh(row)
        return Account.model_validate(row)

    def update(self, account: Account) -> Account:
        row = self.session.get(AccountRow, account.id)
        if row is None:
            raise NotFoundError("Account not found")
        for field in _ACCOUNT_FIELDS:
            if field == "id":
                continue
            setattr(row, field, getattr(account, field))
        row.email = normalize_email(account.email)
        self._commit_or_conflict()
        self.session.refresh(row)
        return Account.model_validate(row)

    def update_fields(self, account_id: str, **fields: Any) -> Account:
        if "email" in fields:
            fields["email"] = normalize_email(fields["email"])
        result = self.session.execute(
            update(AccountRow)
            .where(AccountRow.id == account_id)
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        self._commit_or_conflict()
        if result.rowcount != 1:
            raise NotFoundError("Account not found")
        return self.find_by_id(account_id)

    def record_activity(self, account_id: str, now: datetime) -> bool:
        result = self.session.execute(
            update(AccountRow)
            .where(AccountRow.id == account_id)
            .values(last_active_at=now)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount == 1

    def list_active_since(self, since: datetime, limit: int) -> list[Account]:
        rows = self.session.execute(
            select(AccountRow)
            .where(AccountRow.is_active.is_(True), AccountRow.last_active_at >= since)
            .order_by(AccountRow.last_active_at.desc())
            .limit(limit)
        ).scalars()
        return [Account.model_validate(r) for r in rows]

    def downgrade_if_expired(self, account_id: str, now: datetime) -> bool:
        # Single conditional UPDATE: concurrent downgrades converge, and a renewal that
        # moved the expiry forward in the meantime is not overwritten.
        result = self.session.execute(
            update(AccountRow)
            .where(AccountRow.id == account_id, _expired_clause(now))
            .values(tier="FREE", updated_at=now)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount == 1

    def downgrade_all_expired(self, now: datetime) -> int:
        result = self.session.execute(
            update(AccountRow)
            .where(_expired_clause(now))
            .values(tier="FREE", updated_at=now)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        return result.rowcount or 0


class SqlAlertStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_id(self, alert_id: str) -> Alert | None:
        row = self.session.get(AlertRow, alert_id)
        return Alert.model_validate(row) if row is not None else None

    def insert(self, alert: Alert) -> Alert:
        row = AlertRow(**alert.model_dump())
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return Alert.model_validate(row)

    def update_fields(self, alert_id: str, **fields: Any) -> Alert | None:
        result = self.session.execute(
            update(AlertRow)
            .where(AlertRow.id == alert_id)
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        if result.rowcount != 1:
            return None
        return self.find_by_id(alert_id)

    def delete(self, alert_id: str) -> Alert | None:
        row = self.session.get(AlertRow, alert_id)
        if row is None:
            return None
        alert = Alert.model_validate(row)
        self.session.delete(row)
        self.session.commit()
        return alert

    def list_recent(
        self,
        *,
        category: str | None = None,
        priority: str | None = None,
        status: str | None = None,
        limit: int | None = None,
    ) -> list[Alert]:
        stmt = select(AlertRow).order_by(AlertRow.created_at.desc(), AlertRow.id)
        if category is not None:
            stmt = stmt.where(AlertRow.category == category)
        if priority is not None:
            stmt = stmt.where(AlertRow.priority == priority)
        if status is not None:
            stmt = stmt.where(AlertRow.status == status)
        else:
            stmt = stmt.where(AlertRow.status != "ARCHIVED")
        if limit is not None:
            stmt = stmt.limit(limit)
        return [Alert.model_validate(r) for r in self.session.execute(stmt).scalars()]


class SqlStrategyStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def insert(self, strategy: Strategy) -> Strategy:
        row = StrategyRow(**strategy.model_dump())
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return Strategy.model_validate(row)

    def list_active(self, limit: int | None = None) -> list[Strategy]:
        stmt = (
            select(StrategyRow)
            .where(StrategyRow.is_active.is_(True))
            .order_by(StrategyRow.created_at.desc(), StrategyRow.id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return [Strategy.model_validate(r) for r in self.session.execute(stmt).scalars()]
