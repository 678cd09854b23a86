"""CLI entrypoint for running a link-following crawl."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any

if __package__ in {None, ""}:
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

from webcrawl.crawler import (
    BaseCrawler,
    BrowserType,
    CrawlConfig,
    CrawlDelayStrategy,
    CrawlRequest,
    CrawlStats,
    CrawlStrategy,
    InvalidRequestError,
    PageLoadEvent,
    extract_links_from_html,
    load_config,
    registrable_domain,
)
from webcrawl.crawler.url import host_from_url

logger = logging.getLogger(__name__)


class LinkFollowingCrawler(BaseCrawler):
    """Crawler that feeds every link of each loaded page back to the frontier."""

    def on_page_load(self, event: PageLoadEvent) -> None:
        super().on_page_load(event)

        response = event.complete_crawl_response
        links = extract_links_from_html(response.page_source, base_url=response.url)

        crawl_requests: list[CrawlRequest] = []
        for link in links:
            try:
                crawl_requests.append(CrawlRequest(link))
            except InvalidRequestError:
                logger.debug("Skipping invalid link: %s", link)

        logger.debug("Found %d links on %s", len(crawl_requests), response.url)
        self.crawl(crawl_requests)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run a browser-based link-following web crawl.",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to JSON/YAML crawl config.",
    )
    parser.add_argument(
        "--seed",
        action="append",
        default=[],
        help="Seed URL (repeatable). Overrides config seeds if provided.",
    )
    parser.add_argument(
        "--allowed_domain",
        action="append",
        default=[],
        help=(
            "Allowed crawl domain (repeatable). Overrides config domains if provided. "
            "Defaults to the registrable domains of the seeds when the offsite filter is on."
        ),
    )

    parser.add_argument(
        "--strategy",
        type=str,
        choices=[strategy.value for strategy in CrawlStrategy],
        default=None,
    )
    parser.add_argument(
        "--max_depth",
        type=int,
        default=None,
        help="Maximum crawl depth. Use 0 for unlimited.",
    )

    parser.add_argument(
        "--delay_strategy",
        type=str,
        choices=[strategy.value for strategy in CrawlDelayStrategy],
        default=None,
    )
    parser.add_argument("--fixed_delay_ms", type=int, default=None)
    parser.add_argument("--min_delay_ms", type=int, default=None)
    parser.add_argument("--max_delay_ms", type=int, default=None)

    parser.add_argument(
        "--no_duplicate_filter",
        action="store_true",
        help="Allow the same URL to be crawled more than once.",
    )
    parser.add_argument(
        "--offsite_filter",
        action="store_true",
        help="Only crawl URLs within the allowed domains.",
    )

    parser.add_argument(
        "--browser",
        type=str,
        choices=[browser.value for browser in BrowserType],
        default=BrowserType.AUTO.value,
    )

    parser.add_argument(
        "--state_file",
        type=Path,
        default=None,
        help="Save crawler state here when the crawl ends or is interrupted.",
    )
    parser.add_argument(
        "--resume",
        action="store_true",
        help="Resume the crawl saved in --state_file instead of starting a new one.",
    )

    parser.add_argument(
        "--log_file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )
    parser.add_argument(
        "--print_stats_json",
        action="store_true",
        help="Print full stats JSON in stdout after run.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> CrawlConfig:
    if args.config is not None:
        config = load_config(args.config)
        payload: dict[str, Any] = config.to_dict()
    else:
        payload = {"seeds": list(args.seed)}

    if args.seed:
        payload["seeds"] = list(args.seed)

    if not payload.get("seeds"):
        raise ValueError("No seeds provided. Use --config or at least one --seed.")

    if args.allowed_domain:
        payload["allowed_domains"] = list(args.allowed_domain)

    if args.offsite_filter:
        payload["offsite_request_filter_enabled"] = True
    if args.no_duplicate_filter:
        payload["duplicate_request_filter_enabled"] = False

    if payload.get("offsite_request_filter_enabled") and not payload.get("allowed_domains"):
        hosts = [
            host_from_url(seed["url"] if isinstance(seed, dict) else seed)
            for seed in payload["seeds"]
        ]
        payload["allowed_domains"] = [registrable_domain(host) or host for host in hosts]

    if args.strategy is not None:
        payload["crawl_strategy"] = args.strategy
    if args.max_depth is not None:
        payload["max_crawl_depth"] = args.max_depth

    if args.delay_strategy is not None:
        payload["crawl_delay_strategy"] = args.delay_strategy
    if args.fixed_delay_ms is not None:
        payload["fixed_crawl_delay_ms"] = args.fixed_delay_ms
    if args.min_delay_ms is not None:
        payload["min_crawl_delay_ms"] = args.min_delay_ms
    if args.max_delay_ms is not None:
        payload["max_crawl_delay_ms"] = args.max_delay_ms

    return CrawlConfig.from_dict(payload)


def setup_logging(log_file: Path | None, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Selenium and urllib3 log every wire request at DEBUG.
    logging.getLogger("selenium").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def print_summary(stats: CrawlStats, *, print_stats_json: bool) -> None:
    payload = stats.to_json()

    print("\n=== Crawl Complete ===")
    for key in [
        "run_duration_seconds",
        "crawl_rate",
        "remaining_duration_estimate_seconds",
        "remaining_crawl_candidate_count",
        "processed_crawl_candidate_count",
        "response_success_count",
        "request_redirect_count",
        "non_html_response_count",
        "response_error_count",
        "network_error_count",
        "page_load_timeout_count",
    ]:
        print(f"{key}: {payload[key]}")

    if print_stats_json:
        print("\n--- Full Stats JSON ---")
        print(json.dumps(payload, indent=2, sort_keys=True))


def _save_state(crawler: LinkFollowingCrawler, state_file: Path | None) -> None:
    if state_file is None:
        return
    crawler.save_state(state_file)
    logging.info("Crawler state saved to %s", state_file)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_file, verbose=args.verbose)

    if args.resume and args.state_file is None:
        logging.error("--resume requires --state_file")
        return 2

    try:
        if args.resume:
            crawler = LinkFollowingCrawler.from_state(args.state_file, browser=args.browser)
        else:
            crawler = LinkFollowingCrawler(build_config(args), browser=args.browser)
    except Exception as exc:
        logging.error("Failed to set up crawler: %s", exc)
        return 2

    config = crawler.config
    logging.info(
        "Starting crawl: resume=%s, strategy=%s, seeds=%d, allowed_domains=%d",
        args.resume,
        config.crawl_strategy.value,
        len(config.seeds),
        len(config.allowed_domains),
    )

    try:
        if args.resume:
            crawler.resume_state()
        else:
            crawler.start()
    except KeyboardInterrupt:
        logging.error("Interrupted by user")
        _save_state(crawler, args.state_file)
        return 130
    except Exception:
        logging.exception("Crawl failed")
        _save_state(crawler, args.state_file)
        return 1

    _save_state(crawler, args.state_file)
    print_summary(crawler.get_crawl_stats(), print_stats_json=args.print_stats_json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
