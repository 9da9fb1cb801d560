# batwiki/wiki_client.py
from __future__ import annotations

from typing import Any, Mapping, Optional

import requests
import structlog

from batwiki import config
from batwiki.datatypes import ArticleDetail, RecentChange, SearchHit, Thumbnail
from batwiki.errors import ArticleNotFoundError, UpstreamError, ValidationError
from batwiki.utils import encode_title

logger = structlog.get_logger(__name__)

MALFORMED = "malformed-response"


class _Malformed(Exception):
    """
    Raised while parsing a body that does not have the expected shape.
    Always converted to UpstreamError before leaving this module.
    """


def _field(obj: Any, key: str) -> Any:
    if not isinstance(obj, Mapping) or key not in obj:
        raise _Malformed(f"missing field {key!r}")
    return obj[key]


def _str(obj: Any, key: str, *, allow_empty: bool = True) -> str:
    value = _field(obj, key)
    if not isinstance(value, str) or (not allow_empty and not value):
        raise _Malformed(f"field {key!r} is not a usable string")
    return value


def _opt_str(obj: Mapping[str, Any], key: str) -> Optional[str]:
    value = obj.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise _Malformed(f"field {key!r} is not a string")
    return value or None


def _count(obj: Any, key: str) -> int:
    """
    Non-negative integer field. 0 is a real value (stub article), not "missing".
    """
    value = _field(obj, key)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise _Malformed(f"field {key!r} is not a non-negative integer")
    return value


def check_limit(limit: int) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
        raise ValidationError(f"limit must be a positive integer, got {limit!r}")
    return limit


def parse_search_response(data: Any) -> list[SearchHit]:
    """
    Turn a list=search response into SearchHits, preserving upstream order.
    A repeated pageid keeps its first occurrence so page_id stays a unique key.
    """
    results = _field(_field(data, "query"), "search")
    if not isinstance(results, list):
        raise _Malformed("query.search is not a list")

    hits: list[SearchHit] = []
    seen: set[int] = set()
    for r in results:
        hit = SearchHit(
            title=_str(r, "title", allow_empty=False),
            page_id=_count(r, "pageid"),
            size_bytes=_count(r, "size"),
            word_count=_count(r, "wordcount"),
            snippet=_str(r, "snippet"),
            timestamp_iso=_str(r, "timestamp"),
        )
        if hit.page_id in seen:
            logger.debug("Dropping duplicate search hit", page_id=hit.page_id)
            continue
        seen.add(hit.page_id)
        hits.append(hit)
    return hits


def parse_summary_response(data: Any) -> ArticleDetail:
    """
    Turn a /page/summary body into an ArticleDetail.
    content_urls.desktop.page is required: it backs the "view original" link.
    """
    content_urls = _field(data, "content_urls")
    desktop_url = _str(_field(content_urls, "desktop"), "page", allow_empty=False)
    mobile = content_urls.get("mobile")
    mobile_url = _opt_str(mobile, "page") if isinstance(mobile, Mapping) else None

    thumbnail: Optional[Thumbnail] = None
    thumb = data.get("thumbnail")
    if thumb is not None:
        thumbnail = Thumbnail(
            url=_str(thumb, "source", allow_empty=False),
            width=_count(thumb, "width"),
            height=_count(thumb, "height"),
        )

    return ArticleDetail(
        page_id=_count(data, "pageid"),
        title=_str(data, "title", allow_empty=False),
        description=_opt_str(data, "description"),
        extract_plain_text=_str(data, "extract"),
        extract_html=_opt_str(data, "extract_html"),
        thumbnail=thumbnail,
        wikidata_id=_opt_str(data, "wikibase_item"),
        timestamp_iso=_str(data, "timestamp"),
        desktop_url=desktop_url,
        mobile_url=mobile_url,
    )


def parse_recent_changes_response(data: Any) -> list[RecentChange]:
    changes = _field(_field(data, "query"), "recentchanges")
    if not isinstance(changes, list):
        raise _Malformed("query.recentchanges is not a list")
    return [
        RecentChange(
            title=_str(c, "title", allow_empty=False),
            timestamp_iso=_str(c, "timestamp"),
            # comment/user are hidden on suppressed revisions
            comment=_opt_str(c, "comment") or "",
            user=_opt_str(c, "user") or "",
            old_size=_count(c, "oldlen"),
            new_size=_count(c, "newlen"),
        )
        for c in changes
    ]


def parse_categories_response(data: Any) -> list[str]:
    categories = _field(_field(data, "query"), "allcategories")
    if not isinstance(categories, list):
        raise _Malformed("query.allcategories is not a list")
    return [_str(c, "*", allow_empty=False) for c in categories]


class WikiClient:
    """
    Thin, typed client for the two Wikipedia API surfaces batwiki needs:
    the action API (search, recent changes, categories) and the REST
    page summary endpoint.

    - Read-only, one GET per call, no instance state beyond configuration.
    - Sends the Wikimedia-etiquette User-Agent and a Cache-Control hint per call.
    - Every failure leaves as UpstreamError (or ValidationError for bad input).
    """

    def __init__(
        self,
        *,
        search_api_url: str = config.SEARCH_API_URL,
        summary_api_url: str = config.SUMMARY_API_URL,
        user_agent: str = config.DEFAULT_UA,
        timeout: Optional[float] = None,
    ) -> None:
        self.search_api_url = search_api_url
        self.summary_api_url = summary_api_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout

    def _headers(self, revalidate: int) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
            "Cache-Control": f"max-age={revalidate}",
        }

    def _get_json(
        self,
        stage: str,
        url: str,
        *,
        revalidate: int,
        params: Optional[dict[str, str]] = None,
    ) -> tuple[int, Any]:
        """
        Perform the GET and decode the JSON body.
        Returns (status, body); non-2xx statuses are returned, not raised,
        so callers can map specific codes before the generic failure.
        """
        logger.debug("Wikipedia request", stage=stage, url=url, params=params)
        try:
            resp = requests.get(
                url,
                headers=self._headers(revalidate),
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Wikipedia request failed", stage=stage, error=str(exc))
            raise UpstreamError(stage, cause="network") from exc

        if not 200 <= resp.status_code < 300:
            return resp.status_code, None

        try:
            return resp.status_code, resp.json()
        except ValueError as exc:
            logger.warning("Wikipedia returned a non-JSON body", stage=stage)
            raise UpstreamError(stage, cause=MALFORMED) from exc

    def _fail(self, stage: str, status: int) -> UpstreamError:
        logger.warning("Wikipedia returned an error status", stage=stage, status=status)
        return UpstreamError(stage, status=status)

    def _query(
        self, stage: str, params: dict[str, str], *, revalidate: int
    ) -> Any:
        status, data = self._get_json(
            stage,
            self.search_api_url,
            revalidate=revalidate,
            params={"action": "query", "format": "json", **params},
        )
        if not 200 <= status < 300:
            raise self._fail(stage, status)
        return data

    def search(self, query: str, limit: int) -> list[SearchHit]:
        """
        Full-text search in the main namespace, in upstream relevance order.
        'limit' above the anonymous API cap is clamped.
        """
        limit = check_limit(limit)
        if limit > config.MAX_SEARCH_LIMIT:
            logger.warning(
                "Clamping search limit", requested=limit, limit=config.MAX_SEARCH_LIMIT
            )
            limit = config.MAX_SEARCH_LIMIT

        data = self._query(
            "search",
            {
                "list": "search",
                "srsearch": query,
                "srlimit": str(limit),
                "srprop": "|".join(config.SEARCH_PROPS),
                "srnamespace": str(config.MAIN_NAMESPACE),
            },
            revalidate=config.SEARCH_REVALIDATE_SECONDS,
        )
        try:
            return parse_search_response(data)
        except _Malformed as exc:
            logger.warning("Malformed search response", error=str(exc))
            raise UpstreamError("search", cause=MALFORMED) from exc

    def get_summary(self, title: str) -> ArticleDetail:
        """
        Fetch the summary of a page by its decoded, human-readable title.
        A 404 raises ArticleNotFoundError.
        """
        if not title or not title.strip():
            raise ValidationError("Title must not be empty")

        url = f"{self.summary_api_url}/page/summary/{encode_title(title)}"
        status, data = self._get_json(
            "summary", url, revalidate=config.SUMMARY_REVALIDATE_SECONDS
        )
        if status == 404:
            logger.info("Wikipedia article not found", title=title)
            raise ArticleNotFoundError(title)
        if not 200 <= status < 300:
            raise self._fail("summary", status)
        try:
            return parse_summary_response(data)
        except _Malformed as exc:
            logger.warning("Malformed summary response", title=title, error=str(exc))
            raise UpstreamError("summary", cause=MALFORMED) from exc

    def recent_changes(self, limit: int) -> list[RecentChange]:
        """
        Latest edits in the main namespace, newest first.
        """
        limit = check_limit(limit)
        data = self._query(
            "recentchanges",
            {
                "list": "recentchanges",
                "rcnamespace": str(config.MAIN_NAMESPACE),
                "rclimit": str(limit),
                "rcprop": "|".join(config.RECENT_CHANGES_PROPS),
            },
            revalidate=config.RECENT_CHANGES_REVALIDATE_SECONDS,
        )
        try:
            return parse_recent_changes_response(data)
        except _Malformed as exc:
            logger.warning("Malformed recent changes response", error=str(exc))
            raise UpstreamError("recentchanges", cause=MALFORMED) from exc

    def categories(self, prefix: str, limit: int = config.CATEGORY_LIMIT) -> list[str]:
        """
        Category names starting with 'prefix' (without the "Category:" namespace).
        """
        limit = check_limit(limit)
        data = self._query(
            "categories",
            {"list": "allcategories", "acprefix": prefix, "aclimit": str(limit)},
            revalidate=config.CATEGORIES_REVALIDATE_SECONDS,
        )
        try:
            return parse_categories_response(data)
        except _Malformed as exc:
            logger.warning("Malformed categories response", error=str(exc))
            raise UpstreamError("categories", cause=MALFORMED) from exc
