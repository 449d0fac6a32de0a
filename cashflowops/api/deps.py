"""Request-scoped providers for stores and shared services. Tests override these."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from cashflowops.core.config import get_settings
from cashflowops.core.database import get_db
from cashflowops.services.avatars import AvatarStorage
from cashflowops.services.events import EventBus
from cashflowops.services.notifier import AlertNotifier
from cashflowops.stores.base import AccountStore, AlertStore, StrategyStore
from cashflowops.stores.sql import SqlAccountStore, SqlAlertStore, SqlStrategyStore


def get_account_store(db: Annotated[Session, Depends(get_db)]) -> AccountStore:
    return SqlAccountStore(db)


def get_alert_store(db: Annotated[Session, Depends(get_db)]) -> AlertStore:
    return SqlAlertStore(db)


def get_strategy_store(db: Annotated[Session, Depends(get_db)]) -> StrategyStore:
    return SqlStrategyStore(db)


def get_event_bus(request: Request) -> EventBus:
    return request.app.state.event_bus


def get_notifier(request: Request) -> AlertNotifier:
    return request.app.state.notifier


def get_avatar_storage() -> AvatarStorage:
    settings = get_settings()
    return AvatarStorage(settings.AVATAR_DIR, settings.AVATAR_URL_PREFIX, settings.AVATAR_MAX_BYTES)
