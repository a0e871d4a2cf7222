# src/evensum/engine/aggregator.py
"""Aggregator: owner of the running total and the live totals sequence.

All mutation goes through fold(), which holds a single lock while it adds
to the total and appends the resulting snapshot, so concurrent folds can
neither lose an update nor interleave partially. Readers take the same
lock and always see a consistent (total, snapshots) pair.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from threading import Condition, Lock

import structlog

from evensum.contracts import PartialResult, ResourceFailure

logger = structlog.get_logger(__name__)


class AggregatorSealedError(RuntimeError):
    """Raised when fold() is called after the run has been finalized."""


class Aggregator:
    """Thread-safe running total with an append-only snapshot log.

    A successful PartialResult adds its value and appends the new total to
    the snapshot log. A failed PartialResult adds nothing, appends no
    snapshot and is kept in the failure list instead.

    The caller is responsible for folding in submission order; the
    scheduler's drain loop does exactly that.

    Usage:
        aggregator = Aggregator()
        aggregator.fold(PartialResult.success(1, 2))    # -> 2
        aggregator.fold(PartialResult.success(2, 10))   # -> 12
        aggregator.seal()
        aggregator.snapshot_sequence()                  # -> (2, 12)
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._appended = Condition(self._lock)

        self._total = 0
        self._snapshots: list[int] = []
        self._failures: list[ResourceFailure] = []
        self._sealed = False

    def fold(self, result: PartialResult) -> int:
        """Fold one partial result into the running total.

        Returns:
            The running total after the fold.

        Raises:
            AggregatorSealedError: If the aggregator has been sealed
        """
        with self._lock:
            if self._sealed:
                raise AggregatorSealedError(f"Cannot fold result for resource {result.resource_id!r}: aggregator is sealed")

            if not result.ok:
                # Failed results carry their failure by construction
                self._failures.append(result.failure)  # type: ignore[arg-type]
                return self._total

            self._total += result.value
            self._snapshots.append(self._total)
            self._appended.notify_all()
            logger.debug("partial_result_folded", resource=result.resource_id, value=result.value, total=self._total)
            return self._total

    def seal(self) -> None:
        """Finalize: no further folds, and live() iterators terminate."""
        with self._lock:
            self._sealed = True
            self._appended.notify_all()

    @property
    def is_sealed(self) -> bool:
        with self._lock:
            return self._sealed

    @property
    def total(self) -> int:
        """Current running total (still growing until sealed)."""
        with self._lock:
            return self._total

    def final_total(self) -> int:
        """Running total; final only once the aggregator is sealed."""
        return self.total

    def snapshot_sequence(self) -> tuple[int, ...]:
        """Snapshots appended so far, oldest first."""
        with self._lock:
            return tuple(self._snapshots)

    @property
    def failures(self) -> tuple[ResourceFailure, ...]:
        with self._lock:
            return tuple(self._failures)

    def live(self, timeout: float | None = None) -> Iterator[int]:
        """Yield snapshots as they are appended, from the first one.

        Blocks between snapshots; ends once the aggregator is sealed and
        every snapshot has been yielded. Any number of independent
        iterators may run concurrently.

        Args:
            timeout: Maximum seconds to wait for each next snapshot (None = forever)

        Raises:
            TimeoutError: If no snapshot or seal arrives within timeout
        """
        position = 0
        while True:
            with self._appended:
                deadline = time.monotonic() + timeout if timeout is not None else None
                while position >= len(self._snapshots) and not self._sealed:
                    if deadline is not None:
                        remaining = deadline - time.monotonic()
                        if remaining <= 0:
                            raise TimeoutError(f"No snapshot after position {position} within {timeout}s")
                        self._appended.wait(timeout=remaining)
                    else:
                        self._appended.wait()

                if position >= len(self._snapshots):
                    return
                snapshot = self._snapshots[position]
            # Never yield while holding the lock
            position += 1
            yield snapshot
