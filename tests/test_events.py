from __future__ import annotations

import re

import pytest

from webcrawl.crawler import (
    CrawlCandidate,
    CrawlEvent,
    CrawlRequest,
    EventCallbackError,
    EventCallbackManager,
    NetworkErrorEvent,
    PatternMatchingCallback,
)


def _event(url: str) -> NetworkErrorEvent:
    return NetworkErrorEvent(CrawlCandidate.from_request(CrawlRequest(url)), "boom")


def test_default_callback_runs_without_custom_callbacks() -> None:
    manager = EventCallbackManager()
    calls: list[str] = []
    manager.set_default_event_callback(CrawlEvent.NETWORK_ERROR, lambda e: calls.append("default"))

    manager.call(CrawlEvent.NETWORK_ERROR, _event("https://example.com/"))

    assert calls == ["default"]


def test_last_default_callback_wins() -> None:
    manager = EventCallbackManager()
    calls: list[str] = []
    manager.set_default_event_callback(CrawlEvent.NETWORK_ERROR, lambda e: calls.append("first"))
    manager.set_default_event_callback(CrawlEvent.NETWORK_ERROR, lambda e: calls.append("second"))

    manager.call(CrawlEvent.NETWORK_ERROR, _event("https://example.com/"))

    assert calls == ["second"]


def test_matching_custom_callbacks_replace_default() -> None:
    manager = EventCallbackManager()
    calls: list[str] = []
    manager.set_default_event_callback(CrawlEvent.NETWORK_ERROR, lambda e: calls.append("default"))
    manager.add_custom_event_callback(
        CrawlEvent.NETWORK_ERROR,
        PatternMatchingCallback(r"https://example\.com/docs/.*", lambda e: calls.append("docs")),
    )
    manager.add_custom_event_callback(
        CrawlEvent.NETWORK_ERROR,
        PatternMatchingCallback(
            re.compile(r"https://example\.com/.*"),
            lambda e: calls.append("all"),
        ),
    )

    manager.call(CrawlEvent.NETWORK_ERROR, _event("https://example.com/docs/intro"))

    assert calls == ["docs", "all"]


def test_default_runs_when_no_custom_callback_matches() -> None:
    manager = EventCallbackManager()
    calls: list[str] = []
    manager.set_default_event_callback(CrawlEvent.NETWORK_ERROR, lambda e: calls.append("default"))
    manager.add_custom_event_callback(
        CrawlEvent.NETWORK_ERROR,
        PatternMatchingCallback(r"https://example\.org/.*", lambda e: calls.append("custom")),
    )

    manager.call(CrawlEvent.NETWORK_ERROR, _event("https://example.com/"))

    assert calls == ["default"]


def test_custom_callbacks_are_scoped_to_their_event() -> None:
    manager = EventCallbackManager()
    calls: list[str] = []
    manager.set_default_event_callback(CrawlEvent.NETWORK_ERROR, lambda e: calls.append("default"))
    manager.add_custom_event_callback(
        CrawlEvent.PAGE_LOAD,
        PatternMatchingCallback(r".*", lambda e: calls.append("page_load")),
    )

    manager.call(CrawlEvent.NETWORK_ERROR, _event("https://example.com/"))

    assert calls == ["default"]


def test_pattern_must_match_the_whole_url() -> None:
    callback = PatternMatchingCallback(r"https://example\.com/", lambda e: None)

    assert callback.matches("https://example.com/")
    assert not callback.matches("https://example.com/page")


def test_missing_default_callback_is_a_no_op() -> None:
    EventCallbackManager().call(CrawlEvent.PAGE_LOAD, _event("https://example.com/"))


def test_failing_custom_callback_does_not_skip_the_others() -> None:
    manager = EventCallbackManager()
    calls: list[str] = []

    def fail(event: NetworkErrorEvent) -> None:
        raise ValueError("callback failed")

    manager.add_custom_event_callback(
        CrawlEvent.NETWORK_ERROR,
        PatternMatchingCallback(r".*", fail),
    )
    manager.add_custom_event_callback(
        CrawlEvent.NETWORK_ERROR,
        PatternMatchingCallback(r".*", lambda e: calls.append("second")),
    )

    with pytest.raises(EventCallbackError) as exc_info:
        manager.call(CrawlEvent.NETWORK_ERROR, _event("https://example.com/"))

    assert calls == ["second"]
    assert len(exc_info.value.errors) == 1
    assert isinstance(exc_info.value.errors[0], ValueError)


def test_default_callback_errors_propagate() -> None:
    manager = EventCallbackManager()

    def fail(event: NetworkErrorEvent) -> None:
        raise KeyError("default failed")

    manager.set_default_event_callback(CrawlEvent.NETWORK_ERROR, fail)

    with pytest.raises(KeyError):
        manager.call(CrawlEvent.NETWORK_ERROR, _event("https://example.com/"))
