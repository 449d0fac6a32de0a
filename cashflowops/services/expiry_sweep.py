"""Expiry sweep: downgrade every lapsed paid subscription to FREE in one pass."""

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from cashflowops.stores.base import AccountStore

if TYPE_CHECKING:
    from cashflowops.core.config import Settings

logger = logging.getLogger(__name__)


def run_expiry_sweep(store: AccountStore, settings: "Settings", now: datetime | None = None) -> int:
    """
    Downgrade non-admin accounts whose subscription_expiry has passed.

    Returns the number of accounts downgraded. Idempotent: safe to run repeatedly, and
    safe alongside request-time entitlement checks (both use the same conditional write).
    """
    if not settings.EXPIRY_SWEEP_ENABLED:
        logger.info("Expiry sweep is disabled (EXPIRY_SWEEP_ENABLED=false); skipping.")
        return 0

    now = now or datetime.now(UTC)
    downgraded = store.downgrade_all_expired(now)
    if downgraded > 0:
        logger.info(
            "Expiry sweep: cutoff=%s, accounts_downgraded=%s",
            now.isoformat(),
            downgraded,
        )
    return downgraded
