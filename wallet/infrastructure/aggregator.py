"""
Parallel Aggregator - Fan-Out/Fan-In Over the Payment List

Computes a sum or a filtered subset of the payment collection with a fixed
number of concurrent workers.

Partitioning:
    n     = number of payments
    g     = worker count
    chunk = n // g + 1

Worker i scans the half-open range [i * chunk, (i + 1) * chunk), clipped
at n. The +1 over-allocates so the last worker always covers the
remainder; a worker whose range starts at or past n does nothing.

Example (n = 7, g = 3, chunk = 3):
    worker 0 → [0, 3)
    worker 1 → [3, 6)
    worker 2 → [6, 7)

Each worker builds a private partial result, then merges it into the
shared accumulator while holding one lock. The scan itself takes no lock:
payments are read-only for the duration of the call (single-writer
contract, the caller must not mutate the ledger concurrently).

All workers are submitted before any of them is awaited.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Sequence

from wallet.domain.models import Money, Payment
from wallet.logging_config import get_logger

logger = get_logger(__name__)

PaymentPredicate = Callable[[Payment], bool]


def partition(total: int, workers: int) -> list[range]:
    """Index range assigned to each worker (possibly empty)."""
    if workers < 1:
        raise ValueError(f"worker count must be at least 1, got {workers}")

    chunk = total // workers + 1
    return [
        range(min(i * chunk, total), min((i + 1) * chunk, total))
        for i in range(workers)
    ]


class ParallelAggregator:
    """
    Runs one aggregation per call on a short-lived thread pool.

    The pool is created and shut down inside the call; there is no
    cancellation and no timeout.
    """

    def __init__(self, payments: Sequence[Payment]):
        self.payments = payments

    def _run(self, workers: int, scan: Callable[[int, range], None]) -> None:
        ranges = partition(len(self.payments), workers)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="wallet-agg") as executor:
            futures = [
                executor.submit(scan, index, indices)
                for index, indices in enumerate(ranges)
            ]
            for future in futures:
                future.result()

    def sum(self, workers: int) -> Money:
        lock = threading.Lock()
        total = 0

        def scan(_: int, indices: range) -> None:
            nonlocal total
            partial = 0
            for j in indices:
                partial += self.payments[j].amount

            with lock:
                total += partial

        self._run(workers, scan)

        logger.debug("aggregator.sum", workers=workers, payments=len(self.payments), total=total)
        return total

    def filter(self, predicate: PaymentPredicate, workers: int) -> list[Payment]:
        """
        Copies of the payments accepted by `predicate`, in ledger order.

        The predicate receives a copy, so it cannot alter ledger state.
        """
        lock = threading.Lock()
        partials: list[tuple[int, list[Payment]]] = []

        def scan(index: int, indices: range) -> None:
            partial = []
            for j in indices:
                payment = self.payments[j].copy()
                if predicate(payment):
                    partial.append(payment)

            with lock:
                partials.append((index, partial))

        self._run(workers, scan)

        # Merge order follows completion order; restore partition order.
        partials.sort(key=lambda item: item[0])
        result = [payment for _, partial in partials for payment in partial]

        logger.debug(
            "aggregator.filter",
            workers=workers,
            payments=len(self.payments),
            matched=len(result),
        )
        return result
