# src/evensum/engine/controller.py
"""Run controller: top-level orchestration of one aggregation run."""

from __future__ import annotations

import random
import threading
from collections.abc import Hashable, Iterator, Sequence
from typing import TYPE_CHECKING

import structlog

from evensum.contracts import RunOutcome, SchedulerState, SchedulerStateError, TotalReading
from evensum.engine.aggregator import Aggregator
from evensum.engine.clock import DEFAULT_CLOCK, Clock
from evensum.engine.scheduler import ExecutorFactory, Scheduler, default_executor_factory
from evensum.engine.worker import ResourceReducer

if TYPE_CHECKING:
    from evensum.core.config import RunSettings

logger = structlog.get_logger(__name__)


class RunController:
    """Starts a run, streams live totals and hands back the outcome.

    Workers are launched on the caller's thread, so PoolStartupError is
    raised by start(). The drain then runs on a background thread, leaving
    the caller free to consume live_totals() while results are folded.

    Usage:
        controller = RunController(ids, reducer, deadline_seconds=60.0)
        controller.start()
        for total in controller.live_totals():
            print(total)
        outcome = controller.wait()
    """

    def __init__(
        self,
        resource_ids: Sequence[Hashable],
        reducer: ResourceReducer,
        *,
        deadline_seconds: float,
        max_delay_seconds: float = 0.0,
        seed: int | None = None,
        clock: Clock = DEFAULT_CLOCK,
        executor_factory: ExecutorFactory = default_executor_factory,
    ) -> None:
        self._aggregator = Aggregator()
        self._scheduler = Scheduler(
            resource_ids,
            reducer,
            deadline_seconds=deadline_seconds,
            max_delay_seconds=max_delay_seconds,
            rng=random.Random(seed),
            clock=clock,
            aggregator=self._aggregator,
            executor_factory=executor_factory,
        )
        self._drain_thread: threading.Thread | None = None
        self._outcome: RunOutcome | None = None
        self._error: BaseException | None = None

    @classmethod
    def from_settings(
        cls,
        settings: RunSettings,
        resource_ids: Sequence[Hashable],
        reducer: ResourceReducer,
    ) -> RunController:
        """Build a controller from validated settings."""
        return cls(
            resource_ids,
            reducer,
            deadline_seconds=settings.deadline_seconds,
            max_delay_seconds=settings.max_startup_delay_seconds,
            seed=settings.seed,
        )

    @property
    def state(self) -> SchedulerState:
        return self._scheduler.state

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    def start(self) -> None:
        """Launch all workers and begin draining in the background.

        Raises:
            SchedulerStateError: If the run was already started
            PoolStartupError: If the worker pool cannot be started
        """
        self._scheduler.launch()
        logger.info("run_started", resources=len(self._scheduler.resource_ids), deadline_s=self._scheduler.deadline_seconds)
        self._drain_thread = threading.Thread(target=self._drain, name="evensum-drain", daemon=True)
        self._drain_thread.start()

    def _drain(self) -> None:
        try:
            self._outcome = self._scheduler.drain()
        except BaseException as e:
            # Re-raised on the caller's thread by wait()
            self._error = e

    def live_totals(self, timeout: float | None = None) -> Iterator[int]:
        """Running total after each successful fold, as it happens.

        The iterator ends when the run completes. It may be created before
        or after start(); it always begins from the first snapshot.
        """
        return self._aggregator.live(timeout=timeout)

    def wait(self, timeout: float | None = None) -> RunOutcome:
        """Block until the run completes and return its outcome.

        Raises:
            SchedulerStateError: If start() was never called
            TimeoutError: If the run is still draining after timeout seconds
        """
        if self._drain_thread is None:
            raise SchedulerStateError("Run has not been started")
        self._drain_thread.join(timeout)
        if self._drain_thread.is_alive():
            raise TimeoutError(f"Run still draining after {timeout}s")
        if self._error is not None:
            raise self._error
        if self._outcome is None:
            raise RuntimeError("Invariant violation: drain finished without outcome or error")
        return self._outcome

    def run(self) -> RunOutcome:
        """start() then wait()."""
        self.start()
        return self.wait()

    def final_total(self) -> TotalReading:
        """Current total, labelled partial until the run has completed.

        Idempotent once the run is complete.
        """
        if self._outcome is not None:
            return TotalReading(value=self._outcome.total, partial=False)
        return TotalReading(value=self._aggregator.total, partial=True)
