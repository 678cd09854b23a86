"""Default values shared by config, frontier, delay mechanisms and the crawl loop."""

from __future__ import annotations

DEFAULT_PRIORITY = 0

DEFAULT_DUPLICATE_REQUEST_FILTER_ENABLED = True
DEFAULT_OFFSITE_REQUEST_FILTER_ENABLED = False
DEFAULT_MAX_CRAWL_DEPTH = 0

DEFAULT_FIXED_CRAWL_DELAY_MS = 0
DEFAULT_MIN_CRAWL_DELAY_MS = 1_000
DEFAULT_MAX_CRAWL_DELAY_MS = 60_000

DEFAULT_PAGE_LOAD_TIMEOUT_MS = 180_000
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0
DEFAULT_USER_AGENT = "webcrawl/0.1 (+https://example.invalid/webcrawl)"

HTML_MIME_TYPE = "text/html"
DEFAULT_MIME_TYPE = "text/plain"
ABOUT_BLANK_URL = "about:blank"

JSON_INDENT = 2
SUPPORTED_CONFIG_SUFFIXES = (".json", ".yaml", ".yml")
