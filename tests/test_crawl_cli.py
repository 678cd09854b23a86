from __future__ import annotations

from pathlib import Path

import pytest

from webcrawl.crawl import LinkFollowingCrawler, build_config, main, parse_args
from webcrawl.crawler import (
    CrawlDelayStrategy,
    CrawlDomain,
    CrawlStrategy,
    save_config,
)

from fakes import FakeDriver, FakeSession


def test_build_config_from_flags() -> None:
    args = parse_args(
        [
            "--seed",
            "https://www.example.com/start",
            "--strategy",
            "depth_first",
            "--max_depth",
            "3",
            "--delay_strategy",
            "random",
            "--min_delay_ms",
            "10",
            "--max_delay_ms",
            "20",
            "--no_duplicate_filter",
        ]
    )

    config = build_config(args)

    assert [seed.url for seed in config.seeds] == ["https://www.example.com/start"]
    assert config.crawl_strategy == CrawlStrategy.DEPTH_FIRST
    assert config.max_crawl_depth == 3
    assert config.crawl_delay_strategy == CrawlDelayStrategy.RANDOM
    assert (config.min_crawl_delay_ms, config.max_crawl_delay_ms) == (10, 20)
    assert config.duplicate_request_filter_enabled is False
    assert config.offsite_request_filter_enabled is False


def test_offsite_filter_defaults_to_seed_domains() -> None:
    args = parse_args(
        [
            "--seed",
            "https://www.example.co.uk/",
            "--seed",
            "https://docs.example.org/",
            "--offsite_filter",
        ]
    )

    config = build_config(args)

    assert config.offsite_request_filter_enabled is True
    assert config.allowed_domains == [CrawlDomain("example.co.uk"), CrawlDomain("example.org")]


def test_flags_override_config_file(tmp_path: Path, make_config) -> None:
    path = tmp_path / "crawl.yaml"
    save_config(make_config(max_crawl_depth=1, allowed_domains=["example.com"]), path)

    config = build_config(parse_args(["--config", str(path), "--max_depth", "5"]))

    assert config.seeds[0].url == "https://example.com/"
    assert config.max_crawl_depth == 5
    assert config.allowed_domains == [CrawlDomain("example.com")]


def test_build_config_requires_seeds() -> None:
    with pytest.raises(ValueError):
        build_config(parse_args([]))


def test_main_reports_configuration_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("webcrawl.crawl.setup_logging", lambda log_file, verbose: None)

    assert main([]) == 2
    assert main(["--resume"]) == 2
    assert (
        main(["--seed", "https://example.com/", "--min_delay_ms", "5", "--max_delay_ms", "5"])
        == 2
    )


def test_link_following_crawler_feeds_discovered_links(make_config) -> None:
    pages = {
        "https://example.com/": '<a href="/a">A</a><a href="https://example.com/b">B</a>',
        "https://example.com/a": '<a href="/">home</a>',
    }
    driver = FakeDriver(pages=pages)
    crawler = LinkFollowingCrawler(
        make_config(),
        driver_factory=lambda _: driver,
        session=FakeSession(),
    )

    crawler.start()

    assert sorted(driver.visited) == [
        "https://example.com/",
        "https://example.com/a",
        "https://example.com/b",
    ]
    stats = crawler.get_crawl_stats()
    assert stats.response_success_count == 3
    assert stats.filtered_duplicate_request_count == 1


def test_link_following_crawler_skips_malformed_links(make_config) -> None:
    pages = {"https://example.com/": '<a href="http://[oops/">bad</a><a href="/a">A</a>'}
    driver = FakeDriver(pages=pages)
    crawler = LinkFollowingCrawler(
        make_config(),
        driver_factory=lambda _: driver,
        session=FakeSession(),
    )

    crawler.start()

    assert driver.visited == ["https://example.com/", "https://example.com/a"]
    assert crawler.get_crawl_stats().network_error_count == 0
