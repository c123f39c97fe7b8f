"""Wall-clock timing for renders and frame sequences.

Provides:
    - timer(): context manager reporting elapsed seconds to a sink
      (DEBUG log line when no sink is given)
    - TimerAccumulator: per-sample timings with total / mean / worst

Renders are timed per frame; animation exports accumulate per-frame samples.
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Sink = Callable[[str, float], None]


def _log_sink(name: str, seconds: float) -> None:
    logger.debug(f"{name}: {seconds * 1e3:.1f} ms")


@contextmanager
def timer(name: str, sink: Optional[Sink] = None):
    """Time the enclosed block.

    Parameters
    ----------
    name : str
        Label passed to the sink
    sink : callable, optional
        sink(name, seconds); defaults to a DEBUG log line

    Examples
    --------
    >>> with timer("render 512x512", sink=lambda n, s: print(n, s)):
    ...     img = renderer.render(512, 512, 7.0)
    """
    report = sink or _log_sink
    t0 = time.perf_counter()
    try:
        yield
    finally:
        report(name, time.perf_counter() - t0)


class TimerAccumulator:
    """Collect timings of repeated work (animation frames, bands).

    Examples
    --------
    >>> frames = TimerAccumulator("frame")
    >>> for t in times:
    ...     with frames.measure():
    ...         renderer.render(256, 256, 42.0, t)
    >>> frames.summary()['mean_s']
    """

    def __init__(self, name: str):
        self.name = name
        self.samples: List[float] = []

    @contextmanager
    def measure(self):
        with timer(self.name, sink=lambda _, seconds: self.samples.append(seconds)):
            yield

    @property
    def count(self) -> int:
        return len(self.samples)

    @property
    def total_time(self) -> float:
        return float(sum(self.samples))

    def mean(self) -> float:
        """Mean seconds per sample (0.0 before the first sample)."""
        return self.total_time / self.count if self.samples else 0.0

    def summary(self) -> Dict[str, float]:
        """Plain dict for metadata files."""
        return {
            'count': self.count,
            'total_s': self.total_time,
            'mean_s': self.mean(),
            'max_s': max(self.samples) if self.samples else 0.0,
        }

    def __repr__(self) -> str:
        return f"TimerAccumulator({self.name!r}, n={self.count}, mean={self.mean() * 1e3:.1f} ms)"
