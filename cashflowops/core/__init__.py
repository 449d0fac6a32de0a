"""Core app configuration and database."""

from cashflowops.core.config import get_settings, settings
from cashflowops.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
