# src/evensum/engine/slots.py
"""Indexed completion slots decoupling worker completion from folding.

Each worker writes its result into its own slot (by submission index) as
soon as it finishes, in whatever order the threads happen to complete. The
drain loop reads slot 0, then 1, then 2, ... and blocks only on the slot it
needs next. Once the slots are closed, late writes are counted and
discarded; nothing can be filled retroactively.
"""

from __future__ import annotations

import time
from collections.abc import Hashable, Sequence
from dataclasses import dataclass
from threading import Condition, Lock
from typing import Any

from evensum.contracts import PartialResult
from evensum.engine.clock import DEFAULT_CLOCK, Clock


@dataclass(frozen=True)
class SlotEntry:
    """A filled slot, as seen by the drain loop.

    Exactly one of result and error is set. error holds an unexpected
    exception escaping the worker (a bug, not a resource failure).
    """

    index: int
    resource_id: Hashable
    completed_at: float
    result: PartialResult | None = None
    error: BaseException | None = None


@dataclass
class _Slot:
    resource_id: Hashable
    completed_at: float | None = None
    result: PartialResult | None = None
    error: BaseException | None = None
    is_filled: bool = False


class ResultSlots:
    """Thread-safe, fixed-size set of result slots.

    Thread Safety Model:
        - fill()/fill_error(): called from worker threads (pool callbacks)
        - wait_for(): called from the single drain thread
        - close(): called from the drain thread when the deadline is spent
          or every slot has been consumed

    Invariants:
        - A slot is filled at most once
        - No slot is filled after close()
    """

    def __init__(
        self,
        resource_ids: Sequence[Hashable],
        *,
        clock: Clock = DEFAULT_CLOCK,
        name: str = "result-slots",
    ) -> None:
        self._name = name
        self._clock = clock
        self._slots = [_Slot(resource_id=rid) for rid in resource_ids]

        self._lock = Lock()
        self._filled = Condition(self._lock)

        self._closed = False
        self._filled_count = 0
        self._late_arrivals = 0

    def __len__(self) -> int:
        return len(self._slots)

    def fill(self, index: int, result: PartialResult) -> bool:
        """Store a worker's result.

        Returns:
            True if stored, False if the slots were already closed (late result).

        Raises:
            IndexError: If index is out of range
            ValueError: If the slot was already filled
        """
        return self._store(index, result=result)

    def fill_error(self, index: int, error: BaseException) -> bool:
        """Store an unexpected exception raised by a worker."""
        return self._store(index, error=error)

    def _store(self, index: int, *, result: PartialResult | None = None, error: BaseException | None = None) -> bool:
        with self._lock:
            slot = self._slots[index]
            if slot.is_filled:
                raise ValueError(f"Slot {index} (resource={slot.resource_id!r}) already filled")
            if self._closed:
                self._late_arrivals += 1
                return False

            slot.result = result
            slot.error = error
            slot.completed_at = self._clock.monotonic()
            slot.is_filled = True
            self._filled_count += 1

            # Only the drain thread waits, and only on one slot at a time
            self._filled.notify_all()
            return True

    def wait_for(self, index: int, timeout: float) -> SlotEntry | None:
        """Block until slot index is filled, at most timeout seconds.

        A timeout of zero (or less) never blocks: an already-filled slot is
        returned, anything else yields None.

        Returns:
            SlotEntry if the slot is filled, None on timeout.
        """
        deadline = time.monotonic() + timeout

        with self._filled:
            slot = self._slots[index]
            while not slot.is_filled:
                if self._closed:
                    return None
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                self._filled.wait(timeout=remaining)

            if slot.completed_at is None:
                raise RuntimeError(f"Invariant violation: slot {index} filled without completed_at")

            return SlotEntry(
                index=index,
                resource_id=slot.resource_id,
                completed_at=slot.completed_at,
                result=slot.result,
                error=slot.error,
            )

    def close(self) -> None:
        """Stop accepting results. Later fills are counted as late arrivals."""
        with self._lock:
            self._closed = True
            self._filled.notify_all()

    @property
    def is_closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def filled_count(self) -> int:
        with self._lock:
            return self._filled_count

    @property
    def late_arrivals(self) -> int:
        """Results that arrived after close() and were discarded."""
        with self._lock:
            return self._late_arrivals

    def get_metrics(self) -> dict[str, Any]:
        """Snapshot of slot usage for logging."""
        with self._lock:
            return {
                "name": self._name,
                "size": len(self._slots),
                "filled": self._filled_count,
                "late_arrivals": self._late_arrivals,
                "closed": self._closed,
            }
