"""Python client for the order lifecycle API with a two-tier query cache."""

from client.api import OrdersClient
from client.cache import PersistentCache, QueryCache, VolatileCache
from client.push import PushListener

__all__ = [
    "OrdersClient",
    "PersistentCache",
    "PushListener",
    "QueryCache",
    "VolatileCache",
]
