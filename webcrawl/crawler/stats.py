"""Thread-safe crawl statistics counters and derived crawl stats."""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, fields
from datetime import timedelta
from typing import Any

from .types import JSONDict


@dataclass(frozen=True, slots=True)
class StatsCounterSnapshot:
    """Immutable point-in-time copy of all `StatsCounter` values."""

    remaining_crawl_candidate_count: int = 0
    processed_crawl_candidate_count: int = 0
    response_success_count: int = 0
    page_load_timeout_count: int = 0
    request_redirect_count: int = 0
    non_html_response_count: int = 0
    response_error_count: int = 0
    network_error_count: int = 0
    filtered_duplicate_request_count: int = 0
    filtered_offsite_request_count: int = 0
    filtered_crawl_depth_limit_exceeding_request_count: int = 0

    def to_json(self) -> JSONDict:
        return {item.name: getattr(self, item.name) for item in fields(self)}


_COUNTER_NAMES = tuple(item.name for item in fields(StatsCounterSnapshot))


class StatsCounter:
    """Accumulate statistics during the operation of the crawler.

    The crawl loop writes from one thread while a reporting surface may read
    snapshots from another. Every increment and the snapshot copy run under
    the same lock, so a snapshot never observes a half-applied update.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: dict[str, int] = dict.fromkeys(_COUNTER_NAMES, 0)

    def record_remaining_crawl_candidate(self) -> None:
        """Record a candidate added to the crawl frontier."""

        with self._lock:
            self._counts["remaining_crawl_candidate_count"] += 1

    def record_response_success(self) -> None:
        """Record a response whose status code indicated success."""

        self._record_processed("response_success_count")

    def record_page_load_timeout(self) -> None:
        """Record a page that did not load within the timeout period."""

        self._record_processed("page_load_timeout_count")

    def record_request_redirect(self) -> None:
        self._record_processed("request_redirect_count")

    def record_non_html_response(self) -> None:
        """Record a response whose MIME type is not text/html."""

        self._record_processed("non_html_response_count")

    def record_response_error(self) -> None:
        """Record a response with a 4xx or 5xx status code."""

        self._record_processed("response_error_count")

    def record_network_error(self) -> None:
        self._record_processed("network_error_count")

    def record_duplicate_request(self) -> None:
        with self._lock:
            self._counts["filtered_duplicate_request_count"] += 1

    def record_offsite_request(self) -> None:
        with self._lock:
            self._counts["filtered_offsite_request_count"] += 1

    def record_crawl_depth_limit_exceeding_request(self) -> None:
        with self._lock:
            self._counts["filtered_crawl_depth_limit_exceeding_request_count"] += 1

    def snapshot(self) -> StatsCounterSnapshot:
        """Return a consistent copy of every counter."""

        with self._lock:
            return StatsCounterSnapshot(**self._counts)

    def reset(self) -> None:
        """Zero all counters."""

        with self._lock:
            self._counts = dict.fromkeys(_COUNTER_NAMES, 0)

    def _record_processed(self, name: str) -> None:
        with self._lock:
            if self._counts["remaining_crawl_candidate_count"] <= 0:
                raise RuntimeError(
                    "The number of remaining crawl candidates cannot be negative."
                )
            self._counts["remaining_crawl_candidate_count"] -= 1
            self._counts["processed_crawl_candidate_count"] += 1
            self._counts[name] += 1

    def __getstate__(self) -> dict[str, Any]:
        with self._lock:
            return {"counts": dict(self._counts)}

    def __setstate__(self, state: dict[str, Any]) -> None:
        self._lock = threading.Lock()
        self._counts = dict.fromkeys(_COUNTER_NAMES, 0)
        self._counts.update(state.get("counts", {}))


def calculate_crawl_rate(run_duration: timedelta, processed_count: int) -> float:
    """Processed candidates per whole minute of run time.

    Under one minute the raw processed count is returned.
    """

    run_minutes = int(run_duration.total_seconds() // 60)
    if run_minutes == 0:
        return float(processed_count)
    return processed_count / run_minutes


def calculate_remaining_duration_estimate(
    crawl_rate: float,
    remaining_count: int,
) -> timedelta | None:
    if not math.isfinite(crawl_rate) or crawl_rate <= 0:
        return None
    return timedelta(minutes=math.ceil(remaining_count / crawl_rate))


class CrawlStats:
    """Crawl statistics with derived metrics, as shown to reporting surfaces."""

    def __init__(self, run_duration: timedelta, snapshot: StatsCounterSnapshot) -> None:
        self.run_duration = run_duration
        self.snapshot = snapshot

        self.crawl_rate = calculate_crawl_rate(
            run_duration,
            snapshot.processed_crawl_candidate_count,
        )

        # Only meaningful once at least one candidate has been processed.
        self.remaining_duration_estimate: timedelta | None = None
        if snapshot.processed_crawl_candidate_count > 0:
            self.remaining_duration_estimate = calculate_remaining_duration_estimate(
                self.crawl_rate,
                snapshot.remaining_crawl_candidate_count,
            )

    def __getattr__(self, name: str) -> Any:
        if name in _COUNTER_NAMES:
            return getattr(self.snapshot, name)
        raise AttributeError(name)

    def to_json(self) -> JSONDict:
        """Return a JSON-serializable summary payload."""

        estimate = self.remaining_duration_estimate
        return {
            "run_duration_seconds": self.run_duration.total_seconds(),
            "crawl_rate": self.crawl_rate,
            "remaining_duration_estimate_seconds": (
                None if estimate is None else estimate.total_seconds()
            ),
            **self.snapshot.to_json(),
        }


__all__ = [
    "CrawlStats",
    "StatsCounter",
    "StatsCounterSnapshot",
    "calculate_crawl_rate",
    "calculate_remaining_duration_estimate",
]
