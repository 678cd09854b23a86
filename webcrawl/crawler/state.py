"""Saving and loading crawler state for pause/resume.

The state is pickled as a single `CrawlState` value and written atomically, so
an interrupted save never leaves a truncated state file behind.
"""

from __future__ import annotations

import os
import pickle
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

from .config import CrawlConfig
from .errors import CrawlerStateError
from .frontier import FrontierState
from .stats import StatsCounter
from .stopwatch import Stopwatch
from .types import utc_now_iso


@dataclass(slots=True)
class CrawlState:
    """Everything needed to continue a crawl in another process."""

    config: CrawlConfig
    frontier_state: FrontierState
    stats_counter: StatsCounter
    stopwatch: Stopwatch
    saved_at: str = field(default_factory=utc_now_iso)


def _atomic_write_bytes(path: Path, data: bytes) -> None:
    tmp_fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent),
        prefix=path.name + ".",
        suffix=".tmp",
    )
    try:
        with os.fdopen(tmp_fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise


def save_crawl_state(state: CrawlState, target: str | Path | BinaryIO) -> None:
    """Write state to a path (atomically) or to an open binary stream."""

    data = pickle.dumps(state, protocol=pickle.HIGHEST_PROTOCOL)

    if isinstance(target, (str, Path)):
        path = Path(target)
        path.parent.mkdir(parents=True, exist_ok=True)
        _atomic_write_bytes(path, data)
        return

    target.write(data)


def load_crawl_state(source: str | Path | BinaryIO) -> CrawlState:
    """Read state written by `save_crawl_state`.

    Only load state files from trusted sources; unpickling can run code.
    """

    if isinstance(source, (str, Path)):
        with Path(source).open("rb") as handle:
            state = pickle.load(handle)
    else:
        state = pickle.load(source)

    if not isinstance(state, CrawlState):
        raise CrawlerStateError(f"Invalid crawler state: {type(state).__name__}")
    return state


__all__ = ["CrawlState", "load_crawl_state", "save_crawl_state"]
