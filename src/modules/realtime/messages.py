"""Push-channel message builders.

Messages carry no order data: ``orders_changed`` only tells clients to
refetch whatever view they are showing.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

ORDERS_CHANGED = "orders_changed"
PING = "ping"
PONG = "pong"


def now_ms() -> int:
    return int(time.time() * 1000)


def orders_changed_message() -> Dict[str, Any]:
    return {"type": ORDERS_CHANGED, "timestamp": now_ms()}


def ping_message(text: Optional[str] = None) -> Dict[str, Any]:
    message: Dict[str, Any] = {"type": PING, "timestamp": now_ms()}
    if text:
        message["payload"] = {"message": text}
    return message


def pong_message() -> Dict[str, Any]:
    return {"type": PONG, "timestamp": now_ms()}
