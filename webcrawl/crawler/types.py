"""Core type definitions shared by the frontier, config and crawl loop.

This module is intentionally dependency-light so other crawler modules can import
shared records without introducing cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .constants import DEFAULT_PRIORITY
from .domain import registrable_domain
from .errors import InvalidRequestError
from .url import host_from_url, with_default_path


class CrawlStrategy(str, Enum):
    """Order in which the frontier hands out candidates."""

    BREADTH_FIRST = "breadth_first"
    DEPTH_FIRST = "depth_first"


class CrawlDelayStrategy(str, Enum):
    """How the pause between two consecutive fetches is computed."""

    FIXED = "fixed"
    RANDOM = "random"
    ADAPTIVE = "adaptive"


JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONDict = dict[str, JSONValue]


def utc_now_iso() -> str:
    """Return an RFC3339-like UTC timestamp string."""

    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass(frozen=True, slots=True)
class CrawlRequest:
    """A request to visit a URL, produced by the user or by link discovery."""

    url: str
    priority: int = DEFAULT_PRIORITY
    metadata: Any = None
    domain: str = field(init=False)
    registrable_domain: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        raw = (self.url or "").strip()
        try:
            host = host_from_url(raw)
            url = with_default_path(raw)
        except ValueError as exc:
            raise InvalidRequestError(f"Malformed request URL: {self.url!r}") from exc
        if not raw or not host or "://" not in raw:
            raise InvalidRequestError(f"Request URL must be absolute: {self.url!r}")

        if not host.isascii():
            # Allowed domains are held in IDNA form.
            try:
                host = host.encode("idna").decode("ascii").lower()
            except UnicodeError as exc:
                raise InvalidRequestError(f"Invalid host in request URL: {self.url!r}") from exc

        object.__setattr__(self, "url", url)
        object.__setattr__(self, "domain", host)
        object.__setattr__(self, "registrable_domain", registrable_domain(host))

    def to_json(self) -> JSONDict:
        return {
            "url": self.url,
            "priority": self.priority,
            "domain": self.domain,
        }


@dataclass(frozen=True, slots=True)
class CrawlCandidate:
    """A filter-approved unit of scheduled work tracked by the frontier."""

    url: str
    domain: str
    priority: int
    metadata: Any = None
    referer_url: str | None = None
    crawl_depth: int = 0

    @classmethod
    def from_request(
        cls,
        request: CrawlRequest,
        *,
        referer_url: str | None = None,
        crawl_depth: int = 0,
    ) -> "CrawlCandidate":
        return cls(
            url=request.url,
            domain=request.domain,
            priority=request.priority,
            metadata=request.metadata,
            referer_url=referer_url,
            crawl_depth=crawl_depth,
        )

    @property
    def is_crawl_seed(self) -> bool:
        return self.crawl_depth == 0

    def to_request(self, url: str | None = None) -> CrawlRequest:
        """Build a request for `url` (default: this candidate's URL) keeping
        priority and metadata."""

        return CrawlRequest(url or self.url, priority=self.priority, metadata=self.metadata)

    def to_json(self) -> JSONDict:
        return {
            "url": self.url,
            "domain": self.domain,
            "priority": self.priority,
            "referer_url": self.referer_url,
            "crawl_depth": self.crawl_depth,
        }


__all__ = [
    "CrawlCandidate",
    "CrawlDelayStrategy",
    "CrawlRequest",
    "CrawlStrategy",
    "JSONDict",
    "JSONPrimitive",
    "JSONValue",
    "utc_now_iso",
]
