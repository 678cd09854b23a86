from __future__ import annotations

from typing import Any

import pytest

from webcrawl.crawler import CrawlConfig, StatsCounter


@pytest.fixture
def stats_counter() -> StatsCounter:
    return StatsCounter()


@pytest.fixture
def make_config():
    def _make(**overrides: Any) -> CrawlConfig:
        overrides.setdefault("seeds", ["https://example.com/"])
        overrides.setdefault("fixed_crawl_delay_ms", 0)
        return CrawlConfig(**overrides)

    return _make
