"""Crawler package: config, frontier, delay mechanisms, events and crawl loop."""

from .base_crawler import BaseCrawler, DriverFactory, response_mime_type
from .browser import BrowserType, create_web_driver
from .config import CrawlConfig, load_config, save_config
from .delay import (
    AdaptiveCrawlDelayMechanism,
    CrawlDelayMechanism,
    FixedCrawlDelayMechanism,
    RandomCrawlDelayMechanism,
    create_crawl_delay_mechanism,
)
from .domain import CrawlDomain, registrable_domain
from .errors import (
    ConfigurationError,
    CrawlerStateError,
    EmptyFrontierError,
    EventCallbackError,
    InvalidDomainError,
    InvalidRequestError,
)
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
from .frontier import CrawlFrontier, FingerprintIndex, FrontierState
from .state import CrawlState, load_crawl_state, save_crawl_state
from .stats import CrawlStats, StatsCounter, StatsCounterSnapshot
from .stopwatch import Stopwatch
from .types import CrawlCandidate, CrawlDelayStrategy, CrawlRequest, CrawlStrategy
from .url import canonicalize_url, create_url_fingerprint, extract_links_from_html, resolve_url

__all__ = [
    "AdaptiveCrawlDelayMechanism",
    "BaseCrawler",
    "BrowserType",
    "CompleteCrawlResponse",
    "ConfigurationError",
    "CrawlCandidate",
    "CrawlConfig",
    "CrawlDelayMechanism",
    "CrawlDelayStrategy",
    "CrawlDomain",
    "CrawlEvent",
    "CrawlFrontier",
    "CrawlRequest",
    "CrawlState",
    "CrawlStats",
    "CrawlStrategy",
    "CrawlerStateError",
    "DriverFactory",
    "EmptyFrontierError",
    "EventCallbackError",
    "EventCallbackManager",
    "FingerprintIndex",
    "FixedCrawlDelayMechanism",
    "FrontierState",
    "InvalidDomainError",
    "InvalidRequestError",
    "NetworkErrorEvent",
    "NonHtmlContentEvent",
    "PageLoadEvent",
    "PageLoadTimeoutEvent",
    "PartialCrawlResponse",
    "PatternMatchingCallback",
    "RandomCrawlDelayMechanism",
    "RequestErrorEvent",
    "RequestRedirectEvent",
    "StatsCounter",
    "StatsCounterSnapshot",
    "Stopwatch",
    "canonicalize_url",
    "create_crawl_delay_mechanism",
    "create_url_fingerprint",
    "create_web_driver",
    "extract_links_from_html",
    "load_config",
    "load_crawl_state",
    "registrable_domain",
    "resolve_url",
    "response_mime_type",
    "save_config",
    "save_crawl_state",
]
