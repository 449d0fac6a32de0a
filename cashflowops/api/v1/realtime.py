"""WebSocket stream of alert events (alert-created, alert-updated, alert-deleted)."""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)
router = APIRouter()


@router.websocket("/alerts")
async def alerts_stream(websocket: WebSocket) -> None:
    """
    Push-only stream. Clients may send "ping" to receive "pong"; anything else is ignored.
    Delivery is best-effort; GET /alerts is the source of truth after a reconnect.
    """
    notifier = websocket.app.state.notifier
    await notifier.connect(websocket)
    try:
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        pass
    finally:
        notifier.disconnect(websocket)
