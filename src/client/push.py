"""Push-channel listener.

Connects to the server's ``/ws`` endpoint, answers heartbeat pings with a
pong and forwards ``orders_changed`` messages to a callback (normally
``OrdersClient.on_push_event``).  Delivery is best-effort; reconnecting
after the connection drops is left to the caller.
"""

from __future__ import annotations

import json
import threading
import time
from typing import Any, Callable, Dict, Optional

import structlog
from websockets.exceptions import ConnectionClosed
from websockets.sync.client import connect

logger = structlog.get_logger(__name__)

MessageCallback = Callable[[Dict[str, Any]], Any]


def _pong() -> str:
    return json.dumps({"type": "pong", "timestamp": int(time.time() * 1000)})


class PushListener:
    def __init__(
        self,
        url: str,
        on_orders_changed: MessageCallback,
        open_timeout: float = 10.0,
        poll_interval: float = 1.0,
        connect_factory: Callable[..., Any] = connect,
    ) -> None:
        self.url = url
        self._on_orders_changed = on_orders_changed
        self._open_timeout = open_timeout
        self._poll_interval = poll_interval
        self._connect = connect_factory

    def handle_message(
        self, raw: str | bytes, reply: Callable[[str], Any]
    ) -> Optional[Dict[str, Any]]:
        """Process one inbound frame; return the decoded message."""
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("client.push_invalid_message")
            return None
        if not isinstance(message, dict):
            return None

        message_type = message.get("type")
        if message_type == "ping":
            reply(_pong())
        elif message_type == "orders_changed":
            logger.info("client.push_orders_changed", timestamp=message.get("timestamp"))
            self._on_orders_changed(message)
        return message

    def run(self, stop: Optional[threading.Event] = None) -> None:
        """Listen until the server closes the connection or ``stop`` is set."""
        with self._connect(self.url, open_timeout=self._open_timeout) as websocket:
            logger.info("client.push_connected", url=self.url)
            # recv wakes up every poll_interval so a quiet channel still sees stop
            while stop is None or not stop.is_set():
                try:
                    raw = websocket.recv(timeout=self._poll_interval)
                except TimeoutError:
                    continue
                except ConnectionClosed:
                    break
                self.handle_message(raw, websocket.send)
        logger.info("client.push_disconnected", url=self.url)
