"""Bounded-concurrency map for independent I/O tasks."""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class FanoutResult:
    item: Any
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self):
        return self.error is None


def bounded_map(func, items, max_workers=4):
    """
    Run ``func`` over ``items`` with at most ``max_workers`` threads.

    Results come back in input order. An exception raised for one item
    is captured on its ``FanoutResult`` and does not cancel the others.
    """
    items = list(items)
    if not items:
        return []

    results = [None] * len(items)
    workers = max(1, min(max_workers, len(items)))

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(func, item): index for index, item in enumerate(items)}
        for future in as_completed(futures):
            index = futures[future]
            try:
                results[index] = FanoutResult(items[index], value=future.result())
            except Exception as e:
                logger.warning(f"Task for {items[index]!r} failed: {e}")
                results[index] = FanoutResult(items[index], error=e)

    return results
