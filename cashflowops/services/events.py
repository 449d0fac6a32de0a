"""In-process domain events. Alert logic publishes here and never touches the transport."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from cashflowops.schemas.alert import Alert, AlertOut

logger = logging.getLogger(__name__)

AlertEventKind = Literal["alert-created", "alert-updated", "alert-deleted"]


@dataclass(frozen=True)
class AlertEvent:
    kind: AlertEventKind
    alert: Alert
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_message(self) -> dict[str, Any]:
        """JSON-ready payload for real-time subscribers."""
        return {
            "type": self.kind,
            "alertId": self.alert.id,
            "alert": AlertOut.model_validate(self.alert).model_dump(mode="json", by_alias=True),
            "occurredAt": self.occurred_at.isoformat(),
        }


Subscriber = Callable[[AlertEvent], None]


class EventBus:
    """
    Synchronous fan-out to subscribers. A failing subscriber is logged and skipped so
    the publishing operation (already persisted) still succeeds.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def publish(self, event: AlertEvent) -> None:
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception:
                logger.exception("Subscriber failed for event %s alert=%s", event.kind, event.alert.id)
