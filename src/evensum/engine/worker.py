# src/evensum/engine/worker.py
"""Worker: one reducer invocation with a randomized startup delay."""

from __future__ import annotations

import random
import time
from collections.abc import Callable, Hashable

import structlog

from evensum.contracts import IOFailure, ParseFailure, PartialResult, ResourceError, ResourceFailure

logger = structlog.get_logger(__name__)

# Supplied by a collaborator: partial sum for one resource, or raises
# IOFailure / ParseFailure.
type ResourceReducer = Callable[[Hashable], int]


class Worker:
    """Runs the reducer for exactly one resource.

    The startup delay is drawn when the worker is created, on the
    scheduler's thread, so a seeded rng gives a reproducible schedule.
    The delay is slept on the worker's own pool thread and never blocks
    sibling workers.

    Expected resource errors are converted into a failed PartialResult.
    Anything else a reducer raises is a bug and propagates to the pool
    future.
    """

    def __init__(
        self,
        resource_id: Hashable,
        reducer: ResourceReducer,
        *,
        max_delay_seconds: float = 0.0,
        rng: random.Random | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_delay_seconds < 0:
            raise ValueError(f"max_delay_seconds must be >= 0, got {max_delay_seconds}")
        self.resource_id = resource_id
        self._reducer = reducer
        self._sleep = sleep
        # random() is in [0, 1), so the delay is in [0, max_delay_seconds)
        self.startup_delay = (rng or random).random() * max_delay_seconds if max_delay_seconds > 0 else 0.0

    def run(self) -> PartialResult:
        if self.startup_delay > 0:
            self._sleep(self.startup_delay)

        try:
            value = self._reducer(self.resource_id)
        except ResourceError as e:
            return self._failed(e)
        except OSError as e:
            return self._failed(IOFailure(self.resource_id, f"{type(e).__name__}: {e}"))
        except ValueError as e:
            # Reducers that skip our parser surface bad data as ValueError
            return self._failed(ParseFailure(self.resource_id, f"{type(e).__name__}: {e}"))

        if value < 0:
            return self._failed(ParseFailure(self.resource_id, f"reducer returned negative partial sum {value}"))

        logger.debug("worker_completed", resource=self.resource_id, value=value, delay_s=round(self.startup_delay, 3))
        return PartialResult.success(self.resource_id, value)

    def _failed(self, error: ResourceError) -> PartialResult:
        failure = ResourceFailure.from_error(error)
        logger.warning("worker_failed", resource=self.resource_id, kind=failure.kind.value, error=failure.message)
        return PartialResult.failed(failure)
