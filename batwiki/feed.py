# batwiki/feed.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Literal, Optional

import structlog

from batwiki import config
from batwiki.datatypes import SearchHit
from batwiki.discovery import ArticleDiscoveryService
from batwiki.errors import UpstreamError

logger = structlog.get_logger(__name__)

LoadPhase = Literal["initial", "refresh"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TopicFeed:
    """
    Caller-owned state of a topic article list: what is displayed, when it
    was last updated, and how the last fetch failed.

    - load(): initial fetch. On failure there is nothing to show.
    - refresh(): re-fetch while articles are displayed. On failure the
      previous articles and last_updated stay untouched.

    Both re-raise the UpstreamError after recording it, so callers can
    branch on error_phase to choose between an error page and a
    "refresh failed" notice over stale data.
    """

    service: ArticleDiscoveryService
    limit: int = config.DEFAULT_ARTICLE_LIMIT
    clock: Callable[[], datetime] = _utcnow
    articles: list[SearchHit] = field(default_factory=list)
    last_updated: Optional[datetime] = None
    error: Optional[UpstreamError] = None
    error_phase: Optional[LoadPhase] = None

    @property
    def loaded(self) -> bool:
        return self.last_updated is not None

    @property
    def stale(self) -> bool:
        """
        True when the displayed articles survived a failed refresh.
        """
        return self.error_phase == "refresh" and self.loaded

    async def _fetch(self, phase: LoadPhase) -> list[SearchHit]:
        self.error = None
        self.error_phase = None
        try:
            articles = await self.service.find_topic_articles(self.limit)
        except UpstreamError as exc:
            self.error = exc
            self.error_phase = phase
            if phase == "initial":
                self.articles = []
                self.last_updated = None
            logger.warning(
                "Topic feed fetch failed",
                phase=phase,
                kept_articles=len(self.articles),
                error=str(exc),
            )
            raise
        self.articles = articles
        self.last_updated = self.clock()
        return articles

    async def load(self) -> list[SearchHit]:
        return await self._fetch("initial")

    async def refresh(self) -> list[SearchHit]:
        """
        Refresh a loaded feed; behaves like load() when nothing was loaded yet.
        """
        return await self._fetch("refresh" if self.loaded else "initial")
