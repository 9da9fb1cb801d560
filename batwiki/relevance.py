# batwiki/relevance.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from batwiki.datatypes import RecentChange, SearchHit


@dataclass(frozen=True, slots=True)
class TopicKeywords:
    """
    The fixed vocabulary of a topic.

    - query_terms are OR-ed into the upstream search query (multi-word terms quoted)
    - title_keywords / snippet_keywords are matched case-insensitively as substrings
    - category_prefix scopes the category listing
    """

    query_terms: tuple[str, ...]
    title_keywords: tuple[str, ...]
    snippet_keywords: tuple[str, ...]
    category_prefix: str = ""

    def __post_init__(self) -> None:
        # matching is case-insensitive, so store the keywords lower-cased once
        object.__setattr__(
            self, "title_keywords", tuple(k.lower() for k in self.title_keywords)
        )
        object.__setattr__(
            self, "snippet_keywords", tuple(k.lower() for k in self.snippet_keywords)
        )


BATMAN_TOPIC = TopicKeywords(
    query_terms=("Batman", "Bruce Wayne", "Gotham City", "Dark Knight"),
    title_keywords=("batman", "bruce wayne", "gotham", "dark knight"),
    snippet_keywords=("batman", "bruce wayne", "gotham"),
    category_prefix="Batman",
)


def build_query(topic: TopicKeywords) -> str:
    """
    Build the broad OR query, e.g. 'Batman OR "Bruce Wayne" OR "Gotham City"'.
    """
    return " OR ".join(f'"{t}"' if " " in t else t for t in topic.query_terms)


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(k in lowered for k in keywords)


def is_relevant(hit: SearchHit, topic: TopicKeywords) -> bool:
    return _contains_any(hit.title, topic.title_keywords) or _contains_any(
        hit.clean_snippet, topic.snippet_keywords
    )


def filter_relevant(hits: Iterable[SearchHit], topic: TopicKeywords) -> list[SearchHit]:
    """
    Keep hits whose title or snippet mentions the topic, in their original order.
    Snippets are matched as plain text, since upstream highlights each word
    of a phrase in its own <span>.
    A heuristic precision pass over the broad query: substring matching,
    no stemming or word boundaries.
    """
    return [h for h in hits if is_relevant(h, topic)]


def filter_relevant_changes(
    changes: Iterable[RecentChange], topic: TopicKeywords
) -> list[RecentChange]:
    """
    Same policy for recent changes, matching the edit comment instead of a snippet.
    """
    return [
        c
        for c in changes
        if _contains_any(c.title, topic.title_keywords)
        or _contains_any(c.comment, topic.snippet_keywords)
    ]
