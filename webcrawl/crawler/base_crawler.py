"""Crawl loop driving the frontier with an HTTP session and a browser."""

from __future__ import annotations

import logging
import threading
from functools import partial
from pathlib import Path
from typing import BinaryIO, Callable, Iterable, Mapping
from urllib.parse import urljoin

import requests
from requests.structures import CaseInsensitiveDict
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.remote.webdriver import WebDriver

from .browser import BrowserType, create_web_driver
from .config import CrawlConfig
from .constants import ABOUT_BLANK_URL, DEFAULT_MIME_TYPE, HTML_MIME_TYPE
from .delay import CrawlDelayMechanism, create_crawl_delay_mechanism
from .errors import CrawlerStateError
from .events import (
    CompleteCrawlResponse,
    CrawlEvent,
    EventCallbackManager,
    NetworkErrorEvent,
    NonHtmlContentEvent,
    PageLoadEvent,
    PageLoadTimeoutEvent,
    PartialCrawlResponse,
    PatternMatchingCallback,
    RequestErrorEvent,
    RequestRedirectEvent,
)
from .frontier import CrawlFrontier
from .state import CrawlState, load_crawl_state, save_crawl_state
from .stats import CrawlStats, StatsCounter
from .stopwatch import Stopwatch
from .types import CrawlCandidate, CrawlDelayStrategy, CrawlRequest

logger = logging.getLogger(__name__)

DriverFactory = Callable[[CrawlConfig], WebDriver]


def response_mime_type(headers: Mapping[str, str]) -> str:
    """MIME type from the Content-Type header, `text/plain` when absent."""

    content_type = headers.get("Content-Type")
    if not content_type:
        return DEFAULT_MIME_TYPE
    return content_type.split(";", 1)[0].strip().lower() or DEFAULT_MIME_TYPE


class BaseCrawler:
    """Base class for crawlers: subclass it and override the `on_*` hooks.

    Each candidate is first probed with an HTTP HEAD request. Only HTML
    responses are opened in the browser. Discovered links are fed back with
    `crawl()` from inside the hooks.

    `start()` and `resume_state()` block until the frontier is exhausted or
    `stop()` is called (from a hook or another thread).
    """

    def __init__(
        self,
        config: CrawlConfig,
        *,
        browser: BrowserType | str = BrowserType.AUTO,
        driver_factory: DriverFactory | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._config = config

        self._driver_factory = driver_factory or partial(create_web_driver, browser)
        self._owns_session = session is None
        self._session = session
        self._driver: WebDriver | None = None
        self._crawl_delay_mechanism: CrawlDelayMechanism | None = None

        self._stats_counter = StatsCounter()
        self._stopwatch = Stopwatch()
        self._frontier = CrawlFrontier(config, self._stats_counter)

        self._callback_manager = EventCallbackManager()
        self._callback_manager.set_default_event_callback(CrawlEvent.PAGE_LOAD, self.on_page_load)
        self._callback_manager.set_default_event_callback(
            CrawlEvent.NON_HTML_CONTENT, self.on_non_html_content
        )
        self._callback_manager.set_default_event_callback(
            CrawlEvent.PAGE_LOAD_TIMEOUT, self.on_page_load_timeout
        )
        self._callback_manager.set_default_event_callback(
            CrawlEvent.REQUEST_REDIRECT, self.on_request_redirect
        )
        self._callback_manager.set_default_event_callback(
            CrawlEvent.NETWORK_ERROR, self.on_network_error
        )
        self._callback_manager.set_default_event_callback(
            CrawlEvent.REQUEST_ERROR, self.on_request_error
        )

        self._state_lock = threading.Lock()
        self._is_stopped = True
        self._stop_event = threading.Event()

    @property
    def config(self) -> CrawlConfig:
        return self._config

    @property
    def driver(self) -> WebDriver:
        """The browser of the running crawl."""

        if self._driver is None:
            raise CrawlerStateError("The browser is only available while the crawler is running.")
        return self._driver

    @property
    def session(self) -> requests.Session:
        """The HTTP session of the running crawl (shares the browser's cookies)."""

        if self._session is None:
            raise CrawlerStateError(
                "The HTTP session is only available while the crawler is running."
            )
        return self._session

    @property
    def is_stopped(self) -> bool:
        with self._state_lock:
            return self._is_stopped

    def get_crawl_stats(self) -> CrawlStats:
        """Summary statistics about the crawl progress. Thread-safe."""

        return CrawlStats(self._stopwatch.elapsed, self._stats_counter.snapshot())

    def start(self) -> None:
        """Start a fresh crawl from the configured seeds."""

        self._start(is_resuming=False)

    def resume_state(self) -> None:
        """Continue the crawl from the current (e.g. restored) state."""

        self._start(is_resuming=True)

    def get_state(self) -> CrawlState:
        return CrawlState(
            config=self._config,
            frontier_state=self._frontier.get_state(),
            stats_counter=self._stats_counter,
            stopwatch=self._stopwatch,
        )

    def save_state(self, target: str | Path | BinaryIO) -> None:
        """Persist config, frontier, stats and run time for a later resume."""

        save_crawl_state(self.get_state(), target)
        logger.debug("Crawler state saved to %s", target)

    @classmethod
    def from_state(cls, source: str | Path | BinaryIO, **kwargs) -> "BaseCrawler":
        """Build a crawler from a saved state; call `resume_state()` to continue.

        Keyword arguments are passed to the constructor.
        """

        state = load_crawl_state(source)
        crawler = cls(state.config, **kwargs)
        crawler._restore_state(state)
        return crawler

    def stop(self) -> None:
        """Gracefully stop the crawler after the current candidate. Thread-safe."""

        with self._state_lock:
            if self._is_stopped:
                raise CrawlerStateError("The crawler is not started.")

        logger.debug("Initiating stop")
        self._stop_event.set()

    def register_custom_event_callback(
        self,
        event: CrawlEvent,
        callback: PatternMatchingCallback,
    ) -> None:
        """Invoke `callback` instead of the default hook for matching URLs."""

        self._callback_manager.add_custom_event_callback(event, callback)

    def crawl(self, crawl_requests: CrawlRequest | Iterable[CrawlRequest]) -> None:
        """Feed requests discovered during the crawl to the frontier.

        The crawler must be running; add seeds to the config otherwise.
        """

        if self.is_stopped:
            raise CrawlerStateError(
                "The crawler is not started. Maybe you meant to add this request as a crawl seed?"
            )

        if isinstance(crawl_requests, CrawlRequest):
            crawl_requests = [crawl_requests]

        self._frontier.feed_requests(crawl_requests, is_crawl_seed=False)

    # Hooks

    def on_start(self) -> None:
        logger.info("Crawler started")

    def on_page_load(self, event: PageLoadEvent) -> None:
        logger.info("Page loaded: %s", event.crawl_candidate.url)

    def on_non_html_content(self, event: NonHtmlContentEvent) -> None:
        logger.info("Non-HTML content: %s", event.crawl_candidate.url)

    def on_page_load_timeout(self, event: PageLoadTimeoutEvent) -> None:
        logger.info("Page load timeout: %s", event.crawl_candidate.url)

    def on_request_redirect(self, event: RequestRedirectEvent) -> None:
        logger.info(
            "Request redirect: %s -> %s",
            event.crawl_candidate.url,
            event.redirected_crawl_request.url,
        )

    def on_network_error(self, event: NetworkErrorEvent) -> None:
        logger.info("Network error: %s (%s)", event.crawl_candidate.url, event.error_message)

    def on_request_error(self, event: RequestErrorEvent) -> None:
        logger.info(
            "Request error: %s (status %d)",
            event.crawl_candidate.url,
            event.partial_crawl_response.status_code,
        )

    def on_stop(self) -> None:
        logger.info("Crawler stopped")

    # Internals

    def _restore_state(self, state: CrawlState) -> None:
        self._config = state.config
        self._stats_counter = state.stats_counter
        self._stopwatch = state.stopwatch
        self._frontier = CrawlFrontier(
            state.config,
            state.stats_counter,
            state=state.frontier_state,
        )

    def _start(self, *, is_resuming: bool) -> None:
        with self._state_lock:
            if not self._is_stopped:
                raise CrawlerStateError("The crawler is already running.")
            self._is_stopped = False
            self._stop_event.clear()

        logger.debug("Crawler is starting (resuming crawl: %s)", is_resuming)

        try:
            if not is_resuming:
                self._stats_counter.reset()
                self._stopwatch = Stopwatch()
                self._frontier.reset()
            self._stopwatch.start()

            if self._owns_session:
                self._session = requests.Session()
                self._session.headers["User-Agent"] = self._config.user_agent

            self._driver = self._driver_factory(self._config)
            self._driver.set_page_load_timeout(self._config.page_load_timeout_ms / 1000)

            # The timing probe needs a loaded document.
            if self._config.crawl_delay_strategy == CrawlDelayStrategy.ADAPTIVE:
                self._driver.get(ABOUT_BLANK_URL)
            self._crawl_delay_mechanism = create_crawl_delay_mechanism(self._config, self._driver)

            self.on_start()
            self._run()
        finally:
            logger.debug("Crawler is stopping")
            try:
                self.on_stop()
            finally:
                self._close_resources()
                if self._stopwatch.is_running:
                    self._stopwatch.stop()
                with self._state_lock:
                    self._is_stopped = True
                self._stop_event.clear()

    def _close_resources(self) -> None:
        if self._driver is not None:
            try:
                self._driver.quit()
            except WebDriverException as exc:
                logger.warning("Failed to close browser: %s", exc)
            finally:
                self._driver = None

        if self._owns_session and self._session is not None:
            self._session.close()
            self._session = None

        self._crawl_delay_mechanism = None

    def _run(self) -> None:
        should_perform_delay = False
        while not self._stop_event.is_set() and self._frontier.has_next_candidate():
            # No delay before the first candidate.
            if should_perform_delay:
                if self._perform_delay():
                    break
            else:
                should_perform_delay = True

            candidate = self._frontier.get_next_candidate()
            logger.debug("Next crawl candidate: %s", candidate.url)
            self._process_candidate(candidate)

    def _perform_delay(self) -> bool:
        """Sleep for the crawl delay; return True if a stop arrived meanwhile."""

        if self._crawl_delay_mechanism is None:
            raise CrawlerStateError(
                "The crawl delay is only available while the crawler is running."
            )
        delay_ms = self._crawl_delay_mechanism.get_delay()
        logger.debug("Performing delay of %d ms", delay_ms)
        return self._stop_event.wait(delay_ms / 1000)

    def _process_candidate(self, candidate: CrawlCandidate) -> None:
        session = self.session
        driver = self.driver
        url = candidate.url

        logger.debug("Sending HTTP HEAD request to %s", url)
        try:
            response = session.head(
                url,
                allow_redirects=False,
                timeout=self._config.request_timeout_seconds,
            )
        except requests.RequestException as exc:
            self._handle_network_error(
                NetworkErrorEvent(candidate, f"{exc.__class__.__name__}: {exc}")
            )
            return

        try:
            partial_response = PartialCrawlResponse(
                status_code=response.status_code,
                headers=CaseInsensitiveDict(response.headers),
            )
        finally:
            response.close()

        status_code = partial_response.status_code
        location = partial_response.headers.get("Location")
        if 300 <= status_code < 400 and location:
            self._handle_request_redirect(candidate, partial_response, location)
            return

        # Non-HTML content is never opened in the browser.
        if response_mime_type(partial_response.headers) != HTML_MIME_TYPE:
            self._handle_non_html_content(NonHtmlContentEvent(candidate, partial_response))
            return

        if status_code >= 400:
            self._handle_request_error(RequestErrorEvent(candidate, partial_response))
            return

        logger.debug("Opening %s in browser", url)
        try:
            driver.get(url)
            self._sync_session_cookies()
        except TimeoutException:
            self._handle_page_load_timeout(PageLoadTimeoutEvent(candidate, partial_response))
            return
        except WebDriverException as exc:
            self._handle_network_error(NetworkErrorEvent(candidate, exc.msg or str(exc)))
            return

        # The browser may have followed a JavaScript or meta refresh redirect.
        loaded_page_url = driver.current_url
        if loaded_page_url != url:
            self._handle_request_redirect(candidate, partial_response, loaded_page_url)
            return

        complete_response = CompleteCrawlResponse(
            status_code=status_code,
            headers=partial_response.headers,
            page_source=driver.page_source,
            url=loaded_page_url,
        )
        self._handle_page_load(PageLoadEvent(candidate, complete_response))

    def _sync_session_cookies(self) -> None:
        """Copy the browser's cookies for the current domain to the HTTP session."""

        session = self.session
        for cookie in self.driver.get_cookies():
            session.cookies.set(
                cookie["name"],
                cookie["value"],
                domain=cookie.get("domain", ""),
                path=cookie.get("path", "/"),
                secure=bool(cookie.get("secure", False)),
                expires=cookie.get("expiry"),
            )

    def _handle_page_load(self, event: PageLoadEvent) -> None:
        logger.debug(
            "Page loaded with status %d: %s",
            event.complete_crawl_response.status_code,
            event.crawl_candidate.url,
        )
        self._stats_counter.record_response_success()
        self._callback_manager.call(CrawlEvent.PAGE_LOAD, event)

    def _handle_non_html_content(self, event: NonHtmlContentEvent) -> None:
        logger.debug("Received response with non-HTML content: %s", event.crawl_candidate.url)
        self._stats_counter.record_non_html_response()
        self._callback_manager.call(CrawlEvent.NON_HTML_CONTENT, event)

    def _handle_page_load_timeout(self, event: PageLoadTimeoutEvent) -> None:
        logger.debug("Page did not load within the timeout period: %s", event.crawl_candidate.url)
        self._stats_counter.record_page_load_timeout()
        self._callback_manager.call(CrawlEvent.PAGE_LOAD_TIMEOUT, event)

    def _handle_request_redirect(
        self,
        candidate: CrawlCandidate,
        partial_response: PartialCrawlResponse,
        redirect_url: str,
    ) -> None:
        try:
            redirected_request = candidate.to_request(urljoin(candidate.url, redirect_url))
        except ValueError as exc:
            self._handle_network_error(
                NetworkErrorEvent(candidate, f"Invalid redirect location: {exc}")
            )
            return

        logger.debug("Request redirected from %s to %s", candidate.url, redirected_request.url)
        self.crawl(redirected_request)
        self._stats_counter.record_request_redirect()
        self._callback_manager.call(
            CrawlEvent.REQUEST_REDIRECT,
            RequestRedirectEvent(candidate, partial_response, redirected_request),
        )

    def _handle_network_error(self, event: NetworkErrorEvent) -> None:
        logger.debug("Network error for %s: %s", event.crawl_candidate.url, event.error_message)
        self._stats_counter.record_network_error()
        self._callback_manager.call(CrawlEvent.NETWORK_ERROR, event)

    def _handle_request_error(self, event: RequestErrorEvent) -> None:
        logger.debug(
            "Received response whose status code (%d) indicates error: %s",
            event.partial_crawl_response.status_code,
            event.crawl_candidate.url,
        )
        self._stats_counter.record_response_error()
        self._callback_manager.call(CrawlEvent.REQUEST_ERROR, event)


__all__ = ["BaseCrawler", "DriverFactory", "response_mime_type"]
