"""Two-tier client query cache.

Volatile tier (in memory): orders and anything else fetched per view.  An
entry is *fresh* for ``fresh_for`` seconds (30 s for orders).  Reads:

- fresh entry: return it;
- stale entry: return it and schedule one background refetch that swaps
  the value in when it arrives (stale-while-revalidate);
- missing entry: fetch synchronously.

Persistent tier (JSON file): low-churn reference data, fresh for one hour.
The file lives under $ORDERS_CLIENT_CACHE_DIR, by default
~/.cache/order-lifecycle.  Orders are never written there.

Entries are dropped, never patched in place.  Dropping a kind bumps its
generation; a fetch that started under an older generation does not
repopulate the cache, so data read before a mutation can't come back
after the mutation invalidated it.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
import time
from collections import defaultdict
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import structlog
from decouple import config

logger = structlog.get_logger(__name__)

ORDERS = "orders"
REFERENCE_KINDS = frozenset(
    {"customers", "users", "payment-methods", "service-types", "service-providers"}
)

ORDERS_FRESH_SECONDS = 30.0
REFERENCE_FRESH_SECONDS = 60 * 60.0

CacheKey = Tuple[str, str]


def default_cache_path() -> Path:
    """Reference cache file, under ``ORDERS_CLIENT_CACHE_DIR`` when set."""
    directory = config(
        "ORDERS_CLIENT_CACHE_DIR",
        default=str(Path.home() / ".cache" / "order-lifecycle"),
    )
    return Path(directory) / "reference.json"


def make_key(kind: str, params: Optional[Mapping[str, Any]] = None) -> CacheKey:
    """Stable key for a resource kind plus its query parameters."""
    return kind, json.dumps(dict(params or {}), sort_keys=True, default=str)


@dataclass
class CacheEntry:
    value: Any
    fetched_at: float
    refreshing: bool = False


class VolatileCache:
    def __init__(
        self,
        fresh_for: float = ORDERS_FRESH_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        executor: Optional[Executor] = None,
    ) -> None:
        self.fresh_for = fresh_for
        self._clock = clock
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="query-cache"
        )
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._generations: Dict[str, int] = defaultdict(int)
        self._lock = threading.RLock()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def peek(self, key: CacheKey) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def is_fresh(self, key: CacheKey) -> bool:
        entry = self.peek(key)
        return entry is not None and self._clock() - entry.fetched_at < self.fresh_for

    def get(self, key: CacheKey, fetch: Callable[[], Any]) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            generation = self._generations[key[0]]

        if entry is None:
            value = fetch()
            self._store(key, value, generation)
            return value

        if self._clock() - entry.fetched_at >= self.fresh_for:
            self._schedule_refresh(key, entry, fetch, generation)
        return entry.value

    def invalidate(self, kind: str) -> int:
        """Drop every entry of ``kind``; return how many were dropped."""
        with self._lock:
            self._generations[kind] += 1
            stale = [key for key in self._entries if key[0] == kind]
            for key in stale:
                del self._entries[key]
        logger.info("client.cache_invalidated", kind=kind, dropped=len(stale))
        return len(stale)

    def close(self) -> None:
        """Stop the refresh worker; a borrowed executor is left running."""
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def _store(self, key: CacheKey, value: Any, generation: int) -> bool:
        with self._lock:
            if self._generations[key[0]] != generation:
                logger.info("client.cache_store_skipped", kind=key[0])
                return False
            self._entries[key] = CacheEntry(value=value, fetched_at=self._clock())
            return True

    def _schedule_refresh(
        self,
        key: CacheKey,
        entry: CacheEntry,
        fetch: Callable[[], Any],
        generation: int,
    ) -> Optional[Future]:
        with self._lock:
            if entry.refreshing:
                return None
            entry.refreshing = True
        return self._executor.submit(self._refresh, key, entry, fetch, generation)

    def _refresh(
        self,
        key: CacheKey,
        entry: CacheEntry,
        fetch: Callable[[], Any],
        generation: int,
    ) -> Any:
        try:
            value = fetch()
        except Exception as exc:
            logger.warning("client.cache_refresh_failed", kind=key[0], error=repr(exc))
            with self._lock:
                entry.refreshing = False
            raise
        self._store(key, value, generation)
        return value


class PersistentCache:
    """JSON-file store for reference data that survives restarts."""

    def __init__(
        self,
        path: os.PathLike | str,
        fresh_for: float = REFERENCE_FRESH_SECONDS,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.path = Path(path)
        self.fresh_for = fresh_for
        self._clock = clock or time.time
        self._lock = threading.Lock()

    @staticmethod
    def _check_kind(kind: str) -> None:
        if kind not in REFERENCE_KINDS:
            raise ValueError(f"'{kind}' cannot be stored in the persistent cache.")

    def get(self, kind: str, fetch: Callable[[], Any]) -> Any:
        self._check_kind(kind)
        with self._lock:
            entry = self._load().get(kind)
        if entry is not None and self._clock() - entry["stored_at"] < self.fresh_for:
            return entry["value"]
        value = fetch()
        self.put(kind, value)
        return value

    def put(self, kind: str, value: Any) -> None:
        self._check_kind(kind)
        with self._lock:
            data = self._load()
            data[kind] = {"value": value, "stored_at": self._clock()}
            self._save(data)

    def invalidate(self, kind: str) -> None:
        with self._lock:
            data = self._load()
            if data.pop(kind, None) is not None:
                self._save(data)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("client.persistent_cache_corrupt", path=str(self.path))
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".cache-")
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle, default=str)
        os.replace(tmp_name, self.path)


class QueryCache:
    """Facade over both tiers plus the invalidation rules."""

    def __init__(
        self,
        volatile: Optional[VolatileCache] = None,
        persistent: Optional[PersistentCache] = None,
    ) -> None:
        self.volatile = volatile or VolatileCache()
        self.persistent = persistent or PersistentCache(default_cache_path())

    def get_orders(self, params: Mapping[str, Any], fetch: Callable[[], Any]) -> Any:
        return self.volatile.get(make_key(ORDERS, params), fetch)

    def get_reference(self, kind: str, fetch: Callable[[], Any]) -> Any:
        if kind not in REFERENCE_KINDS:
            raise ValueError(f"Unknown reference kind '{kind}'.")
        return self.persistent.get(kind, fetch)

    def invalidate(self, kind: str) -> None:
        self.volatile.invalidate(kind)
        if kind in REFERENCE_KINDS:
            self.persistent.invalidate(kind)

    def close(self) -> None:
        self.volatile.close()

    def handle_push_event(self, message: Mapping[str, Any]) -> bool:
        """Apply a push message; ``True`` when order data was invalidated."""
        if message.get("type") != "orders_changed":
            return False
        self.invalidate(ORDERS)
        return True
