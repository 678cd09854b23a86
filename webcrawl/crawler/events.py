"""Crawl events, their payloads and the callback dispatcher."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping

from .errors import EventCallbackError
from .types import CrawlCandidate, CrawlRequest

logger = logging.getLogger(__name__)


class CrawlEvent(str, Enum):
    """Outcome kinds reported for a processed crawl candidate."""

    PAGE_LOAD = "page_load"
    NON_HTML_CONTENT = "non_html_content"
    PAGE_LOAD_TIMEOUT = "page_load_timeout"
    REQUEST_REDIRECT = "request_redirect"
    NETWORK_ERROR = "network_error"
    REQUEST_ERROR = "request_error"


@dataclass(frozen=True, slots=True)
class PartialCrawlResponse:
    """Status and headers of a response that was not rendered in the browser."""

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CompleteCrawlResponse:
    """A response rendered in the browser."""

    status_code: int
    headers: Mapping[str, str]
    page_source: str
    url: str


@dataclass(frozen=True, slots=True)
class PageLoadEvent:
    crawl_candidate: CrawlCandidate
    complete_crawl_response: CompleteCrawlResponse


@dataclass(frozen=True, slots=True)
class NonHtmlContentEvent:
    crawl_candidate: CrawlCandidate
    partial_crawl_response: PartialCrawlResponse


@dataclass(frozen=True, slots=True)
class PageLoadTimeoutEvent:
    crawl_candidate: CrawlCandidate
    partial_crawl_response: PartialCrawlResponse


@dataclass(frozen=True, slots=True)
class RequestRedirectEvent:
    crawl_candidate: CrawlCandidate
    partial_crawl_response: PartialCrawlResponse
    redirected_crawl_request: CrawlRequest


@dataclass(frozen=True, slots=True)
class NetworkErrorEvent:
    crawl_candidate: CrawlCandidate
    error_message: str


@dataclass(frozen=True, slots=True)
class RequestErrorEvent:
    crawl_candidate: CrawlCandidate
    partial_crawl_response: PartialCrawlResponse


EventCallback = Callable[[Any], None]


class PatternMatchingCallback:
    """A callback that only fires for request URLs matching `url_pattern`."""

    def __init__(self, url_pattern: re.Pattern[str] | str, callback: EventCallback) -> None:
        if isinstance(url_pattern, str):
            url_pattern = re.compile(url_pattern)
        self.url_pattern = url_pattern
        self.callback = callback

    def matches(self, url: str) -> bool:
        return self.url_pattern.fullmatch(url) is not None

    def __repr__(self) -> str:
        return f"PatternMatchingCallback(url_pattern={self.url_pattern.pattern!r})"


class EventCallbackManager:
    """Routes crawl events to default and URL-pattern-matching callbacks.

    Custom callbacks take precedence: when at least one matches the event's
    request URL, the default callback is not invoked.
    """

    def __init__(self) -> None:
        self._default_callbacks: dict[CrawlEvent, EventCallback] = {}
        self._custom_callbacks: dict[CrawlEvent, list[PatternMatchingCallback]] = {}

    def set_default_event_callback(self, event: CrawlEvent, callback: EventCallback) -> None:
        self._default_callbacks[event] = callback

    def add_custom_event_callback(
        self,
        event: CrawlEvent,
        callback: PatternMatchingCallback,
    ) -> None:
        self._custom_callbacks.setdefault(event, []).append(callback)

    def call(self, event: CrawlEvent, payload: Any) -> None:
        """Dispatch `payload` for `event`.

        Raises `EventCallbackError` after every matching custom callback has
        run if any of them failed. Errors from the default callback propagate
        unchanged.
        """

        url = payload.crawl_candidate.url
        matching = [
            callback
            for callback in self._custom_callbacks.get(event, [])
            if callback.matches(url)
        ]

        if not matching:
            default = self._default_callbacks.get(event)
            if default is None:
                logger.debug("No callback registered for %s event", event.value)
                return
            default(payload)
            return

        errors: list[Exception] = []
        for callback in matching:
            try:
                callback.callback(payload)
            except Exception as exc:
                logger.exception(
                    "Custom %s callback %r failed for %s",
                    event.value,
                    callback,
                    url,
                )
                errors.append(exc)

        if errors:
            raise EventCallbackError(
                f"{len(errors)} custom {event.value} callback(s) failed for {url}",
                errors,
            )


__all__ = [
    "CompleteCrawlResponse",
    "CrawlEvent",
    "EventCallback",
    "EventCallbackManager",
    "NetworkErrorEvent",
    "NonHtmlContentEvent",
    "PageLoadEvent",
    "PageLoadTimeoutEvent",
    "PartialCrawlResponse",
    "PatternMatchingCallback",
    "RequestErrorEvent",
    "RequestRedirectEvent",
]
