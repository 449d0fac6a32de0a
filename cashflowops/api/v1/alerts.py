"""Alert endpoints: tier-shaped listing for everyone, create/delete for admins."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from cashflowops.api.deps import get_account_store, get_alert_store, get_event_bus
from cashflowops.api.v1.auth import get_current_account, require_admin
from cashflowops.core.config import get_settings
from cashflowops.schemas.account import Account, Tier
from cashflowops.schemas.alert import (
    AlertCategory,
    AlertCreateRequest,
    AlertEnvelope,
    AlertOut,
    AlertPriority,
    AlertStatus,
    AlertUpdateRequest,
    TierShapedList,
)
from cashflowops.services.alerts import create_alert, delete_alert, list_alerts, update_alert
from cashflowops.services.entitlement import higher_tier
from cashflowops.services.events import EventBus
from cashflowops.stores.base import AccountStore, AlertStore

router = APIRouter()

ALERTS_FLOOR_TIER: Tier = "FREE"


@router.get("", response_model=TierShapedList[AlertOut])
def get_alerts(
    current: Annotated[Account, Depends(get_current_account)],
    accounts: Annotated[AccountStore, Depends(get_account_store)],
    alerts: Annotated[AlertStore, Depends(get_alert_store)],
    required_tier: Annotated[Tier | None, Query(alias="requiredTier")] = None,
    category: AlertCategory | None = None,
    priority: AlertPriority | None = None,
    alert_status: Annotated[AlertStatus | None, Query(alias="status")] = None,
) -> TierShapedList[AlertOut]:
    """
    Alerts newest first, optionally filtered by category, priority and status.
    ARCHIVED alerts are listed only when asked for by status.

    FREE accounts receive only the newest FREE_TIER_RESULT_LIMIT alerts. 402 with
    SubscriptionRequired or SubscriptionExpired when requiredTier is not satisfied.
    """
    settings = get_settings()
    items, total, shaped_for = list_alerts(
        alerts,
        accounts,
        current,
        required_tier=higher_tier(ALERTS_FLOOR_TIER, required_tier or ALERTS_FLOOR_TIER),
        free_limit=settings.FREE_TIER_RESULT_LIMIT,
        max_items=settings.ALERTS_LIST_LIMIT,
        category=category,
        priority=priority,
        status=alert_status,
    )
    return TierShapedList[AlertOut](
        items=[AlertOut.model_validate(a) for a in items],
        total=total,
        truncated=len(items) < total,
        tier=shaped_for,
    )


@router.post("", response_model=AlertEnvelope, status_code=status.HTTP_201_CREATED)
def post_alert(
    body: AlertCreateRequest,
    admin: Annotated[Account, Depends(require_admin)],
    alerts: Annotated[AlertStore, Depends(get_alert_store)],
    bus: Annotated[EventBus, Depends(get_event_bus)],
) -> AlertEnvelope:
    """Create an alert and push it to connected realtime clients (admin only)."""
    alert = create_alert(alerts, bus, admin, body)
    return AlertEnvelope(alert=AlertOut.model_validate(alert))


@router.delete("/{alert_id}", response_model=AlertEnvelope)
def remove_alert(
    alert_id: str,
    admin: Annotated[Account, Depends(require_admin)],
    alerts: Annotated[AlertStore, Depends(get_alert_store)],
    bus: Annotated[EventBus, Depends(get_event_bus)],
) -> AlertEnvelope:
    """Delete an alert and push the deletion to connected realtime clients (admin only)."""
    alert = delete_alert(alerts, bus, admin, alert_id)
    return AlertEnvelope(alert=AlertOut.model_validate(alert))


@router.patch("/{alert_id}", response_model=AlertEnvelope)
def patch_alert(
    alert_id: str,
    body: AlertUpdateRequest,
    admin: Annotated[Account, Depends(require_admin)],
    alerts: Annotated[AlertStore, Depends(get_alert_store)],
    bus: Annotated[EventBus, Depends(get_event_bus)],
) -> AlertEnvelope:
    """Close or archive an alert and record its P&L (admin only). Pushed as alert-updated."""
    alert = update_alert(alerts, bus, admin, alert_id, body)
    return AlertEnvelope(alert=AlertOut.model_validate(alert))
