# batwiki/errors.py
from __future__ import annotations

from typing import Optional


class BatwikiError(Exception):
    """
    Base class for every error raised by batwiki.
    """


class ValidationError(BatwikiError):
    """
    Malformed caller input (bad limit, undecodable title, ...).
    Raised before any network call and never worth retrying.
    """


class UpstreamError(BatwikiError):
    """
    Any failure talking to the Wikipedia APIs.

    - stage: which call failed ("search", "summary", "recentchanges", "categories")
    - status: HTTP status when the server answered with a non-2xx code
    - cause: "malformed-response", "network" or "unknown" when there was no usable status
    """

    def __init__(
        self,
        stage: str,
        *,
        status: Optional[int] = None,
        cause: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        self.stage = stage
        self.status = status
        self.cause = cause
        super().__init__(message or self._default_message())

    def _default_message(self) -> str:
        if self.status is not None:
            return f"Wikipedia {self.stage} failed: HTTP {self.status}"
        return f"Wikipedia {self.stage} failed: {self.cause or 'unknown'}"

    @property
    def is_not_found(self) -> bool:
        return self.stage == "summary" and self.status == 404

    @property
    def kind(self) -> str:
        return "not-found" if self.is_not_found else "upstream"

    @property
    def retryable(self) -> bool:
        """
        Not-found is a final answer; everything else may succeed on a manual retry.
        """
        return not self.is_not_found

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(stage={self.stage!r}, "
            f"status={self.status!r}, cause={self.cause!r})"
        )


class ArticleNotFoundError(UpstreamError):
    """
    The summary endpoint answered 404 for the requested title.
    """

    def __init__(self, title: str) -> None:
        self.title = title
        super().__init__(
            "summary", status=404, message=f"No Wikipedia article titled {title!r}"
        )
