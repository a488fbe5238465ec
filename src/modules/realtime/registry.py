"""Connection registry and heartbeat.

The registry owns every live push connection of this process.  It lives on
the ASGI event loop and is only touched from coroutines running there, so
it needs no locking.  Fan-out is a sequential iteration over a snapshot of
the connections; a connection whose send fails is pruned on the spot.

Liveness: each ``probe`` marks every connection as awaiting a pong and pings
it.  A connection still awaiting a pong at the next probe is pruned and
closed.  Probes are never retried.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

import structlog
from django.conf import settings

from modules.realtime.messages import ping_message

logger = structlog.get_logger(__name__)


class PushConnection(Protocol):
    async def send_json(self, content: Dict[str, Any], close: bool = False) -> None: ...

    async def close(self, code: Optional[int] = None) -> None: ...


@dataclass
class ConnectionState:
    awaiting_pong: bool = False
    last_seen: float = field(default_factory=time.monotonic)


class ConnectionRegistry:
    """Bounded set of live connections plus the heartbeat task."""

    def __init__(self, max_connections: int = 500, heartbeat_interval: float = 15.0) -> None:
        self.max_connections = max_connections
        self.heartbeat_interval = heartbeat_interval
        self._connections: Dict[PushConnection, ConnectionState] = {}
        self._heartbeat_task: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection: object) -> bool:
        return connection in self._connections

    @property
    def is_full(self) -> bool:
        return len(self._connections) >= self.max_connections

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def register(self, connection: PushConnection) -> bool:
        """Add a connection; ``False`` when the registry is at capacity."""
        if connection in self._connections:
            return True
        if self.is_full:
            logger.warning("realtime.registry_full", max_connections=self.max_connections)
            return False
        self._connections[connection] = ConnectionState()
        logger.info("realtime.connection_registered", connections=len(self))
        return True

    def unregister(self, connection: PushConnection) -> None:
        if self._connections.pop(connection, None) is not None:
            logger.info("realtime.connection_unregistered", connections=len(self))
        if not self._connections:
            self.stop_heartbeat()

    def mark_alive(self, connection: PushConnection) -> None:
        state = self._connections.get(connection)
        if state is not None:
            state.awaiting_pong = False
            state.last_seen = time.monotonic()

    def _prune(self, connection: PushConnection, reason: str) -> None:
        self._connections.pop(connection, None)
        logger.warning("realtime.connection_pruned", reason=reason, connections=len(self))

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------

    async def _send(self, connection: PushConnection, message: Dict[str, Any]) -> bool:
        try:
            await connection.send_json(message)
        except Exception as exc:  # dead peer, whatever the transport error
            logger.warning("realtime.send_failed", error=repr(exc))
            self._prune(connection, reason="send_failed")
            return False
        return True

    async def _close(self, connection: PushConnection) -> None:
        try:
            await connection.close()
        except Exception as exc:  # already gone
            logger.info("realtime.close_failed", error=repr(exc))

    async def broadcast(self, message: Dict[str, Any]) -> int:
        """Send ``message`` to every live connection; return the delivered count."""
        delivered = 0
        for connection in list(self._connections):
            if await self._send(connection, message):
                delivered += 1
        logger.info(
            "realtime.broadcast",
            message_type=message.get("type"),
            delivered=delivered,
            connections=len(self),
        )
        return delivered

    # ------------------------------------------------------------------
    # Heartbeat
    # ------------------------------------------------------------------

    async def probe(self) -> None:
        """Run one liveness cycle."""
        for connection, state in list(self._connections.items()):
            if state.awaiting_pong:
                self._prune(connection, reason="heartbeat_timeout")
                await self._close(connection)
                continue
            state.awaiting_pong = True
            await self._send(connection, ping_message())

    async def run_heartbeat(self, interval: Optional[float] = None) -> None:
        interval = interval or self.heartbeat_interval
        while True:
            await asyncio.sleep(interval)
            await self.probe()

    def ensure_heartbeat(self) -> None:
        """Start the heartbeat on the running loop unless it is already running."""
        if self._heartbeat_task is None or self._heartbeat_task.done():
            self._heartbeat_task = asyncio.get_running_loop().create_task(
                self.run_heartbeat()
            )
            logger.info("realtime.heartbeat_started", interval=self.heartbeat_interval)

    def stop_heartbeat(self) -> None:
        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
            self._heartbeat_task = None
            logger.info("realtime.heartbeat_stopped")


connection_registry = ConnectionRegistry(
    max_connections=getattr(settings, "REALTIME_MAX_CONNECTIONS", 500),
    heartbeat_interval=getattr(settings, "REALTIME_HEARTBEAT_INTERVAL", 15.0),
)
