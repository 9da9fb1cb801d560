# batwiki/__init__.py
from __future__ import annotations

from batwiki.cache import CachingWikiClient
from batwiki.datatypes import ArticleDetail, RecentChange, SearchHit, Thumbnail
from batwiki.discovery import ArticleDiscoveryService
from batwiki.errors import (
    ArticleNotFoundError,
    BatwikiError,
    UpstreamError,
    ValidationError,
)
from batwiki.feed import TopicFeed
from batwiki.relevance import BATMAN_TOPIC, TopicKeywords, build_query, filter_relevant
from batwiki.wiki_client import WikiClient

__version__ = "0.1.0"

__all__ = [
    "ArticleDetail",
    "ArticleDiscoveryService",
    "ArticleNotFoundError",
    "BATMAN_TOPIC",
    "BatwikiError",
    "CachingWikiClient",
    "RecentChange",
    "SearchHit",
    "Thumbnail",
    "TopicFeed",
    "TopicKeywords",
    "UpstreamError",
    "ValidationError",
    "WikiClient",
    "build_query",
    "filter_relevant",
]
