"""Fixed-width worker pool over a shared work cursor."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def run_bounded(items: Sequence[T], width: int, worker: Callable[[T], R]) -> list[R]:
    """Run ``worker`` over ``items`` with at most ``width`` calls in flight.

    Each of the ``min(width, len(items))`` workers repeatedly claims the next
    unclaimed index, so a slow item never holds up a whole partition. Results
    are returned in input order.

    Once any call raises, no further items are claimed; calls already running
    are allowed to finish, and the first exception is re-raised.

    Raises:
        ValueError: If width is less than 1
    """
    if width < 1:
        raise ValueError(f"width must be at least 1, got {width}")
    if not items:
        return []

    width = min(width, len(items))
    results: list[R | None] = [None] * len(items)
    lock = threading.Lock()
    stop = threading.Event()
    errors: list[Exception] = []
    cursor = 0

    def claim() -> int | None:
        nonlocal cursor
        with lock:
            if stop.is_set() or cursor >= len(items):
                return None
            index = cursor
            cursor += 1
            return index

    def work_loop() -> None:
        while True:
            index = claim()
            if index is None:
                return
            try:
                results[index] = worker(items[index])
            except Exception as e:
                with lock:
                    errors.append(e)
                stop.set()
                return

    logger.debug(f"Running {len(items)} items with {width} workers")
    with ThreadPoolExecutor(max_workers=width, thread_name_prefix="northbase") as pool:
        futures = [pool.submit(work_loop) for _ in range(width)]
        for future in futures:
            future.result()

    if errors:
        raise errors[0]
    return results  # type: ignore[return-value]
