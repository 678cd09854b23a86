"""Crawl delay mechanisms: how long to pause between two fetches."""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from typing import Any, Protocol

from .config import CrawlConfig
from .errors import ConfigurationError
from .types import CrawlDelayStrategy

logger = logging.getLogger(__name__)

BROWSER_COMPATIBILITY_JS = "return ('performance' in window) && ('timing' in window.performance)"
DELAY_CALCULATION_JS = (
    "return performance.timing.loadEventEnd - performance.timing.navigationStart;"
)


class JavascriptExecutor(Protocol):
    """Anything with a selenium-style `execute_script` (e.g. a WebDriver)."""

    def execute_script(self, script: str, *args: Any) -> Any: ...


class CrawlDelayMechanism(ABC):
    """Base class of the crawl delay strategies."""

    @abstractmethod
    def get_delay(self) -> int:
        """Return the delay in milliseconds before the next fetch."""


class FixedCrawlDelayMechanism(CrawlDelayMechanism):
    """Always waits the configured fixed delay."""

    def __init__(self, config: CrawlConfig) -> None:
        self._delay_ms = config.fixed_crawl_delay_ms

    def get_delay(self) -> int:
        return self._delay_ms


class RandomCrawlDelayMechanism(CrawlDelayMechanism):
    """Uniform random delay within the configured bounds (inclusive)."""

    def __init__(self, config: CrawlConfig, *, rng: random.Random | None = None) -> None:
        self._lower_limit = config.min_crawl_delay_ms
        self._upper_limit = config.max_crawl_delay_ms
        self._rng = rng or random.Random()

    def get_delay(self) -> int:
        return self._rng.randint(self._lower_limit, self._upper_limit)


class AdaptiveCrawlDelayMechanism(CrawlDelayMechanism):
    """Delay equal to the last page's load time, clamped to the bounds.

    The load time is read from the browser's Navigation Timing API, so the
    browser must have just loaded the page being measured.
    """

    def __init__(self, config: CrawlConfig, js_executor: JavascriptExecutor) -> None:
        if not self.is_browser_compatible(js_executor):
            raise ConfigurationError(
                "The browser does not support the Navigation Timing API "
                "required by the adaptive crawl delay."
            )

        self._min_delay_ms = config.min_crawl_delay_ms
        self._max_delay_ms = config.max_crawl_delay_ms
        self._js_executor = js_executor

    @staticmethod
    def is_browser_compatible(js_executor: JavascriptExecutor) -> bool:
        """Check whether the browser exposes `window.performance.timing`."""

        return bool(js_executor.execute_script(BROWSER_COMPATIBILITY_JS))

    def get_delay(self) -> int:
        delay = int(self._js_executor.execute_script(DELAY_CALCULATION_JS) or 0)

        if delay < self._min_delay_ms:
            return self._min_delay_ms
        if delay > self._max_delay_ms:
            return self._max_delay_ms
        return delay


def create_crawl_delay_mechanism(
    config: CrawlConfig,
    js_executor: JavascriptExecutor | None = None,
) -> CrawlDelayMechanism:
    """Build the delay mechanism selected by `config.crawl_delay_strategy`."""

    strategy = config.crawl_delay_strategy
    logger.debug("Using crawl delay strategy: %s", strategy.value)

    if strategy == CrawlDelayStrategy.FIXED:
        return FixedCrawlDelayMechanism(config)
    if strategy == CrawlDelayStrategy.RANDOM:
        return RandomCrawlDelayMechanism(config)
    if strategy == CrawlDelayStrategy.ADAPTIVE:
        if js_executor is None:
            raise ConfigurationError("The adaptive crawl delay requires a browser.")
        return AdaptiveCrawlDelayMechanism(config, js_executor)

    raise ConfigurationError(f"Unsupported crawl delay strategy: {strategy!r}")


__all__ = [
    "AdaptiveCrawlDelayMechanism",
    "CrawlDelayMechanism",
    "FixedCrawlDelayMechanism",
    "JavascriptExecutor",
    "RandomCrawlDelayMechanism",
    "create_crawl_delay_mechanism",
]
