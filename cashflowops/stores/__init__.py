"""Account and alert storage: protocols plus in-memory and SQLAlchemy implementations."""

from cashflowops.stores.base import AccountStore, AlertStore, normalize_email
from cashflowops.stores.memory import InMemoryAccountStore, InMemoryAlertStore
from cashflowops.stores.sql import SqlAccountStore, SqlAlertStore

__all__ = [
    "AccountStore",
    "AlertStore",
    "InMemoryAccountStore",
    "InMemoryAlertStore",
    "SqlAccountStore",
    "SqlAlertStore",
    "normalize_email",
]
