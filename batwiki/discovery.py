# batwiki/discovery.py
from __future__ import annotations

import asyncio
from contextlib import contextmanager
from typing import Iterator, Union

import structlog

from batwiki import config
from batwiki.cache import CachingWikiClient
from batwiki.datatypes import ArticleDetail, RecentChange, SearchHit
from batwiki.errors import UpstreamError, ValidationError
from batwiki.relevance import (
    BATMAN_TOPIC,
    TopicKeywords,
    build_query,
    filter_relevant,
    filter_relevant_changes,
)
from batwiki.utils import decode_title
from batwiki.wiki_client import WikiClient, check_limit

logger = structlog.get_logger(__name__)

Client = Union[WikiClient, CachingWikiClient]


class ArticleDiscoveryService:
    """
    The one entry point consumers depend on.

    Composes the Wikipedia client with the topic relevance filter. Every
    operation is a coroutine that runs the blocking HTTP call on a worker
    thread, so concurrent calls do not block each other. The service keeps
    no mutable state and never retries: one failed call is one reported
    failure.

    Errors:
      - ValidationError for bad input, raised before any network call
      - UpstreamError from the client, unchanged
      - anything else is wrapped as UpstreamError(cause="unknown")
    """

    def __init__(
        self,
        client: Client | None = None,
        topic: TopicKeywords = BATMAN_TOPIC,
    ) -> None:
        self.client = client if client is not None else WikiClient()
        self.topic = topic

    @contextmanager
    def _normalised(self, stage: str) -> Iterator[None]:
        """
        Service boundary: our own errors pass through, anything else raised
        while fetching or post-processing becomes UpstreamError(cause="unknown").
        """
        try:
            yield
        except (UpstreamError, ValidationError):
            raise
        except Exception as exc:
            logger.error("Unexpected error talking to Wikipedia", stage=stage, error=repr(exc))
            raise UpstreamError(stage, cause="unknown") from exc

    async def find_topic_articles(
        self, limit: int = config.DEFAULT_ARTICLE_LIMIT
    ) -> list[SearchHit]:
        """
        Search with the topic's OR query and keep only relevant hits.
        The result can be shorter than 'limit' (the filter only removes).
        """
        check_limit(limit)
        with self._normalised("search"):
            query = build_query(self.topic)
            hits = await asyncio.to_thread(self.client.search, query, limit)
            relevant = filter_relevant(hits, self.topic)
        logger.info("Topic articles fetched", raw=len(hits), kept=len(relevant))
        return relevant

    async def get_article(self, encoded_title: str) -> ArticleDetail:
        """
        Fetch one article by the percent-encoded title found in a link or path.
        ArticleNotFoundError is the expected "no such page" outcome.
        """
        title = decode_title(encoded_title)
        with self._normalised("summary"):
            return await asyncio.to_thread(self.client.get_summary, title)

    async def recent_topic_changes(
        self, limit: int = config.DEFAULT_CHANGES_LIMIT
    ) -> list[RecentChange]:
        """
        Latest main-namespace edits touching the topic.
        Pulls a larger window of changes and filters it down to 'limit'.
        """
        check_limit(limit)
        with self._normalised("recentchanges"):
            changes = await asyncio.to_thread(
                self.client.recent_changes, config.RECENT_CHANGES_FETCH_SIZE
            )
            return filter_relevant_changes(changes, self.topic)[:limit]

    async def topic_categories(self) -> list[str]:
        if not self.topic.category_prefix:
            return []
        with self._normalised("categories"):
            return await asyncio.to_thread(
                self.client.categories, self.topic.category_prefix, config.CATEGORY_LIMIT
            )
