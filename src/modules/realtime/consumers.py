"""Websocket consumer for the push channel (``/ws``)."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

import structlog
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from modules.core.middleware import bind_correlation_id, correlation_id_from_scope
from modules.realtime.messages import PING, PONG, ping_message, pong_message
from modules.realtime.registry import ConnectionRegistry, connection_registry

logger = structlog.get_logger(__name__)

WELCOME_TEXT = "Connected to the real-time server"

# Close code sent after accepting a connection the registry has no room for
# (RFC 6455 "try again later").
CLOSE_TRY_AGAIN_LATER = 1013


class OrdersConsumer(AsyncJsonWebsocketConsumer):
    """One push connection.

    Clients never send commands over this channel; the only inbound
    messages understood are ``ping`` (answered with ``pong``) and ``pong``
    (a liveness answer to a heartbeat probe).
    """

    registry: ConnectionRegistry = connection_registry

    async def connect(self) -> None:
        bind_correlation_id(correlation_id_from_scope(self.scope.get("headers", [])))
        # Refusing the handshake would surface as a bare 403; accepting first
        # lets the client read the close code.
        await self.accept()
        if self.registry.is_full:
            logger.warning("realtime.connection_rejected", reason="registry_full")
            await self.close(code=CLOSE_TRY_AGAIN_LATER)
            return

        self.registry.register(self)
        logger.info("realtime.connected", connections=len(self.registry))
        await self.send_json(ping_message(WELCOME_TEXT))
        self.registry.ensure_heartbeat()

    async def disconnect(self, code: Optional[int]) -> None:
        self.registry.unregister(self)
        logger.info("realtime.disconnected", code=code)

    async def receive_json(self, content: Any, **kwargs: Any) -> None:
        message_type = content.get("type") if isinstance(content, dict) else None
        if message_type == PING:
            self.registry.mark_alive(self)
            await self.send_json(pong_message())
        elif message_type == PONG:
            self.registry.mark_alive(self)
        else:
            logger.info("realtime.message_ignored", message_type=message_type)

    @classmethod
    async def decode_json(cls, text_data: str) -> Dict[str, Any]:
        try:
            return json.loads(text_data)
        except json.JSONDecodeError:
            logger.warning("realtime.invalid_message")
            return {}
