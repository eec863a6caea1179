"""Client WebSocket framing and outbound channel."""

from livetranslate.api.websocket.channel import ClientChannel
from livetranslate.api.websocket.protocol import parse_client_message

__all__ = ["ClientChannel", "parse_client_message"]
