from __future__ import annotations

import pickle
import threading
from datetime import timedelta

import pytest

from webcrawl.crawler import CrawlStats, StatsCounter, StatsCounterSnapshot


def test_processed_outcomes_move_candidates_from_remaining(stats_counter: StatsCounter) -> None:
    for _ in range(7):
        stats_counter.record_remaining_crawl_candidate()

    stats_counter.record_response_success()
    stats_counter.record_page_load_timeout()
    stats_counter.record_request_redirect()
    stats_counter.record_non_html_response()
    stats_counter.record_response_error()
    stats_counter.record_network_error()

    snapshot = stats_counter.snapshot()
    assert snapshot.remaining_crawl_candidate_count == 1
    assert snapshot.processed_crawl_candidate_count == 6
    assert snapshot.response_success_count == 1
    assert snapshot.page_load_timeout_count == 1
    assert snapshot.request_redirect_count == 1
    assert snapshot.non_html_response_count == 1
    assert snapshot.response_error_count == 1
    assert snapshot.network_error_count == 1


def test_filtered_requests_do_not_touch_remaining(stats_counter: StatsCounter) -> None:
    stats_counter.record_duplicate_request()
    stats_counter.record_offsite_request()
    stats_counter.record_offsite_request()
    stats_counter.record_crawl_depth_limit_exceeding_request()

    snapshot = stats_counter.snapshot()
    assert snapshot.remaining_crawl_candidate_count == 0
    assert snapshot.filtered_duplicate_request_count == 1
    assert snapshot.filtered_offsite_request_count == 2
    assert snapshot.filtered_crawl_depth_limit_exceeding_request_count == 1


def test_remaining_cannot_go_negative(stats_counter: StatsCounter) -> None:
    with pytest.raises(RuntimeError):
        stats_counter.record_response_success()

    assert stats_counter.snapshot() == StatsCounterSnapshot()


def test_reset_zeroes_every_counter(stats_counter: StatsCounter) -> None:
    stats_counter.record_remaining_crawl_candidate()
    stats_counter.record_network_error()
    stats_counter.record_duplicate_request()

    stats_counter.reset()

    assert stats_counter.snapshot() == StatsCounterSnapshot()


def test_snapshot_is_isolated_from_later_updates(stats_counter: StatsCounter) -> None:
    stats_counter.record_remaining_crawl_candidate()
    snapshot = stats_counter.snapshot()

    stats_counter.record_response_success()

    assert snapshot.remaining_crawl_candidate_count == 1
    assert snapshot.processed_crawl_candidate_count == 0


def test_snapshots_are_consistent_under_concurrent_updates(stats_counter: StatsCounter) -> None:
    iterations = 5_000
    done = threading.Event()
    inconsistent: list[StatsCounterSnapshot] = []

    def write() -> None:
        for _ in range(iterations):
            stats_counter.record_remaining_crawl_candidate()
            stats_counter.record_response_success()
        done.set()

    def read() -> None:
        while not done.is_set():
            snapshot = stats_counter.snapshot()
            if (
                snapshot.processed_crawl_candidate_count != snapshot.response_success_count
                or snapshot.remaining_crawl_candidate_count not in {0, 1}
            ):
                inconsistent.append(snapshot)

    writer = threading.Thread(target=write)
    readers = [threading.Thread(target=read) for _ in range(3)]
    for thread in [writer, *readers]:
        thread.start()
    for thread in [writer, *readers]:
        thread.join()

    assert inconsistent == []
    final = stats_counter.snapshot()
    assert final.processed_crawl_candidate_count == iterations
    assert final.remaining_crawl_candidate_count == 0


def test_counter_survives_pickling(stats_counter: StatsCounter) -> None:
    stats_counter.record_remaining_crawl_candidate()
    stats_counter.record_remaining_crawl_candidate()
    stats_counter.record_response_success()

    restored = pickle.loads(pickle.dumps(stats_counter))
    restored.record_response_error()

    snapshot = restored.snapshot()
    assert snapshot.remaining_crawl_candidate_count == 0
    assert snapshot.processed_crawl_candidate_count == 2


def _snapshot(processed: int, remaining: int) -> StatsCounterSnapshot:
    return StatsCounterSnapshot(
        processed_crawl_candidate_count=processed,
        remaining_crawl_candidate_count=remaining,
        response_success_count=processed,
    )


def test_crawl_rate_under_one_minute_is_processed_count() -> None:
    stats = CrawlStats(timedelta(seconds=30), _snapshot(processed=10, remaining=5))

    assert stats.crawl_rate == 10.0
    assert stats.remaining_duration_estimate == timedelta(minutes=1)


def test_crawl_rate_uses_whole_minutes() -> None:
    stats = CrawlStats(timedelta(minutes=3, seconds=59), _snapshot(processed=30, remaining=25))

    assert stats.crawl_rate == 10.0
    assert stats.remaining_duration_estimate == timedelta(minutes=3)


def test_no_estimate_before_anything_was_processed() -> None:
    stats = CrawlStats(timedelta(minutes=5), _snapshot(processed=0, remaining=8))

    assert stats.crawl_rate == 0.0
    assert stats.remaining_duration_estimate is None


def test_crawl_stats_expose_counters_and_json() -> None:
    stats = CrawlStats(timedelta(seconds=90), _snapshot(processed=4, remaining=2))

    assert stats.response_success_count == 4
    with pytest.raises(AttributeError):
        stats.not_a_counter

    payload = stats.to_json()
    assert payload["run_duration_seconds"] == 90.0
    assert payload["crawl_rate"] == 4.0
    assert payload["remaining_duration_estimate_seconds"] == 60.0
    assert payload["processed_crawl_candidate_count"] == 4
