# batwiki/cache.py
from __future__ import annotations

import threading
import time
from typing import Any, Callable, Hashable

import structlog

from batwiki import config
from batwiki.datatypes import ArticleDetail, RecentChange, SearchHit
from batwiki.wiki_client import WikiClient

logger = structlog.get_logger(__name__)


class CachingWikiClient:
    """
    Optional decorator around WikiClient that honours the revalidation hints
    as in-process TTLs (5 min for search, 1 h for summaries, ...).

    - Same methods and results as the wrapped client; only successes are cached.
    - Safe to share between worker threads.
    """

    def __init__(
        self,
        client: WikiClient | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client if client is not None else WikiClient()
        self._clock = clock
        # key -> (expires_at, value)
        self._entries: dict[Hashable, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def _cached(self, key: Hashable, ttl: int, fetch: Callable[[], Any]) -> Any:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and now < entry[0]:
                logger.debug("Cache hit", key=key)
                return entry[1]

        # fetch outside the lock; concurrent misses may both hit the network
        value = fetch()
        now = self._clock()
        with self._lock:
            self._prune(now)
            self._entries[key] = (now + ttl, value)
        return value

    def _prune(self, now: float) -> None:
        # caller holds the lock
        expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug("Evicted expired cache entries", count=len(expired))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def search(self, query: str, limit: int) -> list[SearchHit]:
        hits = self._cached(
            ("search", query, limit),
            config.SEARCH_REVALIDATE_SECONDS,
            lambda: self.client.search(query, limit),
        )
        return list(hits)

    def get_summary(self, title: str) -> ArticleDetail:
        return self._cached(
            ("summary", title),
            config.SUMMARY_REVALIDATE_SECONDS,
            lambda: self.client.get_summary(title),
        )

    def recent_changes(self, limit: int) -> list[RecentChange]:
        changes = self._cached(
            ("recentchanges", limit),
            config.RECENT_CHANGES_REVALIDATE_SECONDS,
            lambda: self.client.recent_changes(limit),
        )
        return list(changes)

    def categories(self, prefix: str, limit: int = config.CATEGORY_LIMIT) -> list[str]:
        names = self._cached(
            ("categories", prefix, limit),
            config.CATEGORIES_REVALIDATE_SECONDS,
            lambda: self.client.categories(prefix, limit),
        )
        return list(names)
