"""Real-time alert notifier: fans AlertEvents out to connected WebSocket sessions.

Fire-and-forget: no acknowledgment and no retry. The alert listing endpoint is the
durable source of truth; a client that misses a push catches up by listing.

Publishers may run on the event loop or in the threadpool that serves sync routes.
The loop that owns the sockets is captured on connect and every broadcast runs there.
"""

import asyncio
import logging

from fastapi import WebSocket

from cashflowops.services.events import AlertEvent

logger = logging.getLogger(__name__)


class AlertNotifier:
    def __init__(self) -> None:
        self._connections: set[WebSocket] = set()
        self._tasks: set[asyncio.Task] = set()
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._loop = asyncio.get_running_loop()
        self._connections.add(websocket)
        logger.info("Realtime client connected (%s total)", len(self._connections))

    def disconnect(self, websocket: WebSocket) -> None:
        self._connections.discard(websocket)
        logger.info("Realtime client disconnected (%s total)", len(self._connections))

    async def broadcast(self, event: AlertEvent) -> None:
        message = event.to_message()
        for websocket in list(self._connections):
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.info("Dropping realtime client after failed send: %s", e)
                self.disconnect(websocket)

    def __call__(self, event: AlertEvent) -> None:
        """EventBus subscriber: schedule the broadcast on the sockets' loop from any thread."""
        loop = self._loop
        if not self._connections or loop is None:
            return
        if loop.is_closed():
            logger.debug("Event loop closed; %s for alert %s not pushed", event.kind, event.alert.id)
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            task = loop.create_task(self.broadcast(event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        else:
            asyncio.run_coroutine_threadsafe(self.broadcast(event), loop)
