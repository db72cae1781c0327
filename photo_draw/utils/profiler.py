"""Lightweight wall-clock profiling for the vectorization stages.

Provides:
    - timer(): Context manager for wall-clock timing with optional sink
    - log_sink(): Sink factory that reports timings through a logger

Used to measure:
    - Stroke classification
    - Grouping, skeletonization and tracing
    - Curve fitting and color sampling

No heavy dependencies (no cProfile overhead during conversion).
"""

import logging
import time
from contextlib import contextmanager
from typing import Callable, Optional


@contextmanager
def timer(name: str, sink: Optional[Callable[[str, float], None]] = None):
    """Context manager for wall-clock timing.

    Parameters
    ----------
    name : str
        Timer name (for logging/display)
    sink : Optional[Callable[[str, float], None]]
        Optional callback(name, elapsed_seconds)
        If None, prints to stdout

    Yields
    ------
    None

    Examples
    --------
    >>> with timer("skeletonize", sink=log_sink(logger)):
    ...     skeleton = skeletonize(group)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if sink is not None:
            sink(name, elapsed)
        else:
            print(f"{name}: {elapsed:.3f} s")


def log_sink(
    logger: logging.Logger,
    level: int = logging.DEBUG
) -> Callable[[str, float], None]:
    """Build a timer sink that writes "<name>: <ms> ms" to ``logger``."""
    def sink(name: str, elapsed: float) -> None:
        logger.log(level, f"{name}: {elapsed * 1000:.1f} ms")
    return sink
