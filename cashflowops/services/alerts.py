"""Alert creation, status updates, deletion and tier-shaped listing."""

import logging
import uuid
from datetime import UTC, datetime

from cashflowops.core.errors import ForbiddenError, NotFoundError
from cashflowops.schemas.account import Account, Tier
from cashflowops.schemas.alert import Alert, AlertCreateRequest, AlertUpdateRequest
from cashflowops.services.entitlement import effective_tier, require_entitlement, truncate_for_tier
from cashflowops.services.events import AlertEvent, EventBus
from cashflowops.stores.base import AccountStore, AlertStore

logger = logging.getLogger(__name__)


def _require_admin(account: Account) -> None:
    if not account.is_admin:
        raise ForbiddenError("Admin access required")


def create_alert(store: AlertStore, bus: EventBus, author: Account, data: AlertCreateRequest) -> Alert:
    """Persist a new alert (admin only) and publish alert-created."""
    _require_admin(author)
    alert = Alert(
        id=uuid.uuid4().hex,
        title=data.title,
        body=data.body,
        category=data.category,
        priority=data.priority,
        symbol=data.symbol,
        bot_name=data.bot_name,
        author_id=author.id,
        created_at=datetime.now(UTC),
    )
    alert = store.insert(alert)
    logger.info("Alert created id=%s category=%s by=%s", alert.id, alert.category, author.id)
    bus.publish(AlertEvent(kind="alert-created", alert=alert))
    return alert


def delete_alert(store: AlertStore, bus: EventBus, actor: Account, alert_id: str) -> Alert:
    """Remove an alert (admin only) and publish alert-deleted."""
    _require_admin(actor)
    alert = store.delete(alert_id)
    if alert is None:
        raise NotFoundError("Alert not found")
    logger.info("Alert deleted id=%s by=%s", alert.id, actor.id)
    bus.publish(AlertEvent(kind="alert-deleted", alert=alert))
    return alert


def update_alert(
    store: AlertStore, bus: EventBus, actor: Account, alert_id: str, data: AlertUpdateRequest
) -> Alert:
    """Change status and/or P&L (admin only) and publish alert-updated. An empty body changes nothing."""
    _require_admin(actor)
    changes = data.model_dump(exclude_none=True)
    if changes:
        alert = store.update_fields(alert_id, **changes)
    else:
        alert = store.find_by_id(alert_id)
    if alert is None:
        raise NotFoundError("Alert not found")
    if changes:
        logger.info("Alert updated id=%s changes=%s by=%s", alert.id, sorted(changes), actor.id)
        bus.publish(AlertEvent(kind="alert-updated", alert=alert))
    return alert


def list_alerts(
    alerts: AlertStore,
    accounts: AccountStore,
    account: Account,
    *,
    required_tier: Tier,
    free_limit: int,
    max_items: int,
    category: str | None = None,
    priority: str | None = None,
    status: str | None = None,
    now: datetime | None = None,
) -> tuple[list[Alert], int, Tier]:
    """
    Newest-first alerts after the entitlement check and tier truncation.

    Returns (items, total before truncation, tier the result was shaped for).
    """
    now = now or datetime.now(UTC)
    require_entitlement(accounts, account, required_tier, now)
    full = alerts.list_recent(category=category, priority=priority, status=status, limit=max_items)
    items = truncate_for_tier(full, account, free_limit, now)
    return items, len(full), effective_tier(account, now)
