"""Crawl frontier: priority queue of candidates with admission filters."""

from __future__ import annotations

import heapq
import logging
from dataclasses import dataclass
from typing import Iterable, Iterator

from .config import CrawlConfig
from .errors import ConfigurationError, CrawlerStateError, EmptyFrontierError
from .stats import StatsCounter
from .types import CrawlCandidate, CrawlRequest, CrawlStrategy
from .url import create_url_fingerprint

logger = logging.getLogger(__name__)

OrderingKey = tuple[int, int]
QueueEntry = tuple[OrderingKey, int, CrawlCandidate]


class FingerprintIndex:
    """Set of URL fingerprints seen during a crawl.

    Entries are never evicted, so memory grows with the number of distinct
    URLs admitted. Evicting would let a URL be crawled twice.
    """

    def __init__(self, fingerprints: Iterable[str] | None = None) -> None:
        self._fingerprints: set[str] = set(fingerprints or ())

    def contains(self, fingerprint: str) -> bool:
        return fingerprint in self._fingerprints

    def add(self, fingerprint: str) -> None:
        self._fingerprints.add(fingerprint)

    def clear(self) -> None:
        self._fingerprints.clear()

    def to_frozenset(self) -> frozenset[str]:
        return frozenset(self._fingerprints)

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._fingerprints

    def __len__(self) -> int:
        return len(self._fingerprints)

    def __iter__(self) -> Iterator[str]:
        return iter(self._fingerprints)


@dataclass(frozen=True, slots=True)
class FrontierState:
    """Everything needed to rebuild a frontier and continue its ordering."""

    fingerprints: frozenset[str]
    entries: tuple[QueueEntry, ...]
    next_sequence: int
    current_candidate: CrawlCandidate | None


def ordering_key(strategy: CrawlStrategy, candidate: CrawlCandidate) -> OrderingKey:
    """Heap key for a candidate; smaller keys are dequeued first."""

    if strategy == CrawlStrategy.BREADTH_FIRST:
        return (candidate.crawl_depth, -candidate.priority)
    if strategy == CrawlStrategy.DEPTH_FIRST:
        return (-candidate.crawl_depth, -candidate.priority)
    raise ConfigurationError(f"Unsupported crawl strategy: {strategy!r}")


class CrawlFrontier:
    """Manages crawl requests and provides crawl candidates to the crawler.

    - Admission filters run in order: offsite, duplicate, crawl depth limit.
    - Rejected requests are only visible through the stats counter.
    - Candidates with equal depth and priority have no guaranteed order.
    - Driven by a single crawl thread; not safe for concurrent use.
    """

    def __init__(
        self,
        config: CrawlConfig,
        stats_counter: StatsCounter,
        *,
        state: FrontierState | None = None,
    ) -> None:
        self.config = config
        self.stats_counter = stats_counter

        # Fail early on an unsupported strategy.
        self._strategy = config.crawl_strategy
        if self._strategy not in {CrawlStrategy.BREADTH_FIRST, CrawlStrategy.DEPTH_FIRST}:
            raise ConfigurationError(f"Unsupported crawl strategy: {self._strategy!r}")

        if state is None:
            self._fingerprints = FingerprintIndex()
            self._queue: list[QueueEntry] = []
            self._next_sequence = 0
            self._current_candidate: CrawlCandidate | None = None
            self._feed_crawl_seeds()
        else:
            self._fingerprints = FingerprintIndex(state.fingerprints)
            self._queue = list(state.entries)
            heapq.heapify(self._queue)
            self._next_sequence = state.next_sequence
            self._current_candidate = state.current_candidate

    @property
    def current_candidate(self) -> CrawlCandidate | None:
        """Candidate most recently handed out by `get_next_candidate`."""

        return self._current_candidate

    def feed_request(self, request: CrawlRequest, is_crawl_seed: bool = False) -> None:
        """Feed a crawl request to the frontier.

        Non-seed requests take their referer and depth from the current
        candidate.
        """

        if self.config.offsite_request_filter_enabled:
            if not self.config.is_in_allowed_domain(request.domain):
                logger.debug("Filtered offsite request: %s", request.url)
                self.stats_counter.record_offsite_request()
                return

        if self.config.duplicate_request_filter_enabled:
            fingerprint = create_url_fingerprint(request.url)
            if self._fingerprints.contains(fingerprint):
                logger.debug("Filtered duplicate request: %s", request.url)
                self.stats_counter.record_duplicate_request()
                return

            self._fingerprints.add(fingerprint)

        if is_crawl_seed:
            candidate = CrawlCandidate.from_request(request)
        else:
            current = self._current_candidate
            if current is None:
                raise CrawlerStateError(
                    "Cannot feed a non-seed request before a candidate has been dequeued."
                )

            crawl_depth_limit = self.config.max_crawl_depth
            next_crawl_depth = current.crawl_depth + 1
            if crawl_depth_limit != 0 and next_crawl_depth > crawl_depth_limit:
                logger.debug(
                    "Filtered request exceeding crawl depth limit (%d > %d): %s",
                    next_crawl_depth,
                    crawl_depth_limit,
                    request.url,
                )
                self.stats_counter.record_crawl_depth_limit_exceeding_request()
                return

            candidate = CrawlCandidate.from_request(
                request,
                referer_url=current.url,
                crawl_depth=next_crawl_depth,
            )

        entry = (ordering_key(self._strategy, candidate), self._next_sequence, candidate)
        self._next_sequence += 1
        heapq.heappush(self._queue, entry)
        self.stats_counter.record_remaining_crawl_candidate()

    def feed_requests(self, requests: Iterable[CrawlRequest], is_crawl_seed: bool = False) -> None:
        for request in requests:
            self.feed_request(request, is_crawl_seed)

    def has_next_candidate(self) -> bool:
        """Indicate if there are any candidates left in the queue."""

        return bool(self._queue)

    def get_next_candidate(self) -> CrawlCandidate:
        """Remove and return the next candidate per the crawl strategy.

        Raises `EmptyFrontierError` when the queue is empty; check
        `has_next_candidate` first.
        """

        if not self._queue:
            raise EmptyFrontierError("The crawl frontier has no candidates left.")

        _, _, candidate = heapq.heappop(self._queue)
        self._current_candidate = candidate
        return candidate

    def reset(self) -> None:
        """Reset to the initial state and re-feed the crawl seeds.

        The stats counter is left untouched.
        """

        self._fingerprints.clear()
        self._queue.clear()
        self._feed_crawl_seeds()

    def get_state(self) -> FrontierState:
        """Return a value copy of the queue, fingerprints and current candidate."""

        return FrontierState(
            fingerprints=self._fingerprints.to_frozenset(),
            entries=tuple(self._queue),
            next_sequence=self._next_sequence,
            current_candidate=self._current_candidate,
        )

    def __len__(self) -> int:
        return len(self._queue)

    def _feed_crawl_seeds(self) -> None:
        for seed in self.config.seeds:
            self.feed_request(seed, is_crawl_seed=True)


__all__ = [
    "CrawlFrontier",
    "FingerprintIndex",
    "FrontierState",
    "ordering_key",
]
