# batwiki/datatypes.py
from __future__ import annotations

from dataclasses import dataclass

from batwiki.utils import article_url, format_timestamp, sanitize_snippet


@dataclass(frozen=True, slots=True)
class SearchHit:
    """
    A single Wikipedia search result (action=query&list=search).
    The snippet is kept raw; use clean_snippet for display.
    """

    title: str
    page_id: int
    size_bytes: int
    word_count: int
    snippet: str
    timestamp_iso: str

    @property
    def clean_snippet(self) -> str:
        return sanitize_snippet(self.snippet)

    @property
    def url(self) -> str:
        return article_url(self.title)

    @property
    def formatted_timestamp(self) -> str:
        return format_timestamp(self.timestamp_iso)


@dataclass(frozen=True, slots=True)
class Thumbnail:
    url: str
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class ArticleDetail:
    """
    A page summary from the REST /page/summary endpoint.
    When extract_html is missing, extract_plain_text is the only content.
    """

    page_id: int
    title: str
    description: str | None
    extract_plain_text: str
    extract_html: str | None
    thumbnail: Thumbnail | None
    wikidata_id: str | None
    timestamp_iso: str
    desktop_url: str
    mobile_url: str | None = None

    @property
    def content(self) -> str:
        return self.extract_html or self.extract_plain_text

    @property
    def formatted_timestamp(self) -> str:
        return format_timestamp(self.timestamp_iso)


@dataclass(frozen=True, slots=True)
class RecentChange:
    """
    One entry of the main-namespace recent changes feed.
    """

    title: str
    timestamp_iso: str
    comment: str
    user: str
    old_size: int
    new_size: int

    @property
    def size_delta(self) -> int:
        return self.new_size - self.old_size

    @property
    def formatted_timestamp(self) -> str:
        return format_timestamp(self.timestamp_iso)
