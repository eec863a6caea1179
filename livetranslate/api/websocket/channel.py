"""Client Channel - best-effort outbound sender for one browser socket.

Sends are serialized so events from the upstream receive loop and from
concurrent pipelines never interleave on the wire. Once the client is gone
every further event is dropped.
"""

from __future__ import annotations

import asyncio

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from livetranslate.api.websocket.protocol import OutboundEvent
from livetranslate.observability.logging import get_logger

logger = get_logger(__name__)


class ClientChannel:
    """Outbound side of a client WebSocket.

    Usage:
        channel = ClientChannel(websocket, connection_id)
        await channel.send(StatusEvent("connected"))
        channel.mark_closed()
    """

    def __init__(self, websocket: WebSocket, connection_id: str) -> None:
        self._websocket = websocket
        self._connection_id = connection_id
        self._lock = asyncio.Lock()
        self._closed = False
        self._sent = 0
        self._dropped = 0

    @property
    def is_open(self) -> bool:
        """Whether events are still delivered."""
        return (
            not self._closed
            and self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    @property
    def sent_count(self) -> int:
        return self._sent

    @property
    def dropped_count(self) -> int:
        return self._dropped

    def mark_closed(self) -> None:
        """Stop delivering events (client disconnected)."""
        self._closed = True

    async def send(self, event: OutboundEvent) -> bool:
        """Send an event if the client is still connected.

        Returns:
            True if sent, False if dropped
        """
        async with self._lock:
            if not self.is_open:
                self._dropped += 1
                return False

            try:
                await self._websocket.send_text(event.to_json())
            except (WebSocketDisconnect, RuntimeError, OSError) as e:
                self._closed = True
                self._dropped += 1
                logger.debug(
                    "client_send_dropped",
                    connection_id=self._connection_id,
                    event_type=event.type,
                    error=str(e),
                )
                return False

            self._sent += 1
            return True
