# Overview: Process-local record cache invalidated by post-commit events.

"""
Record cache for read-mostly views (product, customer, staff).

Entries are keyed by (kind, id). Invalidation is driven by the
``records_changed`` signal that the ledger services emit after every commit
touching those rows; the TTL only bounds staleness for writes made outside
this process.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Hashable, Iterable

from .signals import records_changed


class RecordCache:
    def __init__(self, ttl_seconds: float = 60):
        self.ttl_seconds = ttl_seconds
        self._entries: dict[tuple[str, Hashable], tuple[float, Any]] = {}
        # Bumped on every invalidation; a load only stores its result if the
        # key was not invalidated while it ran.
        self._generations: dict[tuple[str, Hashable], int] = {}
        self._epoch = 0
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def init_app(self, app) -> None:
        self.ttl_seconds = app.config.get("RECORD_CACHE_TTL_SECONDS", self.ttl_seconds)
        app.extensions["record_cache"] = self
        records_changed.connect(self._on_records_changed, weak=False)

    def get_or_load(self, kind: str, key: Hashable, loader: Callable[[], Any]) -> Any:
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get((kind, key))
            if entry is not None and entry[0] > now:
                self.hits += 1
                return entry[1]
            self.misses += 1
            generation = self._generation((kind, key))

        value = loader()
        if value is not None:
            with self._lock:
                if self._generation((kind, key)) == generation:
                    self._entries[(kind, key)] = (now + self.ttl_seconds, value)
        return value

    def _generation(self, cache_key) -> tuple[int, int]:
        return self._epoch, self._generations.get(cache_key, 0)

    def invalidate(self, kind: str, keys: Iterable[Hashable]) -> None:
        with self._lock:
            for key in keys:
                self._entries.pop((kind, key), None)
                self._generations[(kind, key)] = self._generations.get((kind, key), 0) + 1

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._generations.clear()
            self._epoch += 1
            self.hits = 0
            self.misses = 0

    def stats(self) -> dict:
        with self._lock:
            return {"size": len(self._entries), "hits": self.hits, "misses": self.misses}

    def _on_records_changed(self, sender, kind: str, ids: Iterable[Hashable] = (), **extra) -> None:
        self.invalidate(kind, ids)
