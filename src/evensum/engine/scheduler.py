# src/evensum/engine/scheduler.py
"""Scheduler: one worker per resource, bounded by a global deadline.

Manages a run while:
- Sizing the thread pool to exactly the resource count (no queueing)
- Writing each worker's result into its submission-indexed slot
- Folding slots into the aggregator in strict submission order
- Charging every slot wait against one shared deadline budget
- Abandoning, not cancelling, workers still running at the deadline
"""

from __future__ import annotations

import random
from collections.abc import Callable, Hashable, Sequence
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from functools import partial

import structlog

from evensum.contracts import (
    PartialResult,
    PoolStartupError,
    ResourceFailure,
    RunOutcome,
    SchedulerState,
    SchedulerStateError,
)
from evensum.engine.aggregator import Aggregator
from evensum.engine.clock import DEFAULT_CLOCK, Clock
from evensum.engine.slots import ResultSlots
from evensum.engine.worker import ResourceReducer, Worker

logger = structlog.get_logger(__name__)

type ExecutorFactory = Callable[[int], Executor]


def default_executor_factory(size: int) -> Executor:
    return ThreadPoolExecutor(max_workers=size, thread_name_prefix="evensum-worker")


class Scheduler:
    """Runs one Worker per resource and drains their results in order.

    State machine:
        IDLE --launch()--> RUNNING --drain()--> DRAINING --> COMPLETED

    run() is launch() followed by drain(). The split lets a caller start
    the workers on its own thread (so pool startup failures surface there)
    and drain on another.

    Deadline policy:
        The deadline starts once every worker is submitted. Before waiting
        on each slot the remaining budget is recomputed; once it is spent
        the slots are closed and every slot not already filled in time is
        recorded as a timeout immediately. The drain therefore never takes
        longer than one deadline, however many workers stall.

    Usage:
        scheduler = Scheduler([1, 2, 3], reducer, deadline_seconds=60.0)
        outcome = scheduler.run()
        outcome.total, outcome.snapshots, outcome.failures
    """

    def __init__(
        self,
        resource_ids: Sequence[Hashable],
        reducer: ResourceReducer,
        *,
        deadline_seconds: float,
        max_delay_seconds: float = 0.0,
        rng: random.Random | None = None,
        clock: Clock = DEFAULT_CLOCK,
        aggregator: Aggregator | None = None,
        executor_factory: ExecutorFactory = default_executor_factory,
    ) -> None:
        if deadline_seconds <= 0:
            raise ValueError(f"deadline_seconds must be > 0, got {deadline_seconds}")
        if max_delay_seconds < 0:
            raise ValueError(f"max_delay_seconds must be >= 0, got {max_delay_seconds}")

        self._resource_ids = tuple(resource_ids)
        self._reducer = reducer
        self._deadline_seconds = deadline_seconds
        self._max_delay_seconds = max_delay_seconds
        self._rng = rng or random.Random()
        self._clock = clock
        self._executor_factory = executor_factory

        self._aggregator = aggregator or Aggregator()
        self._slots = ResultSlots(self._resource_ids, clock=clock)
        self._pool: Executor | None = None
        self._state = SchedulerState.IDLE

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def aggregator(self) -> Aggregator:
        return self._aggregator

    @property
    def slots(self) -> ResultSlots:
        return self._slots

    @property
    def resource_ids(self) -> tuple[Hashable, ...]:
        return self._resource_ids

    @property
    def deadline_seconds(self) -> float:
        return self._deadline_seconds

    def run(self) -> RunOutcome:
        """Launch every worker, drain them, and return the outcome."""
        self.launch()
        return self.drain()

    def launch(self) -> None:
        """Create the pool and submit one worker per resource (IDLE -> RUNNING).

        Raises:
            SchedulerStateError: If the scheduler has already been launched
            PoolStartupError: If the pool or one of its threads cannot start
        """
        self._transition(SchedulerState.IDLE, SchedulerState.RUNNING)

        count = len(self._resource_ids)
        if count == 0:
            logger.info("no_resources_to_schedule")
            return

        try:
            self._pool = self._executor_factory(count)
        except (OSError, RuntimeError, ValueError) as e:
            self._abort()
            raise PoolStartupError(f"Could not create worker pool of size {count}: {e}") from e
        logger.debug("worker_pool_created", size=count)

        for index, resource_id in enumerate(self._resource_ids):
            worker = Worker(
                resource_id,
                self._reducer,
                max_delay_seconds=self._max_delay_seconds,
                rng=self._rng,
            )
            try:
                future = self._pool.submit(worker.run)
            except RuntimeError as e:
                # Thread creation failed ("can't start new thread") or pool shut down
                self._abort()
                raise PoolStartupError(f"Could not start worker for resource {resource_id!r}: {e}") from e
            future.add_done_callback(partial(self._on_worker_done, index))
            logger.debug("worker_submitted", resource=resource_id, index=index, delay_s=round(worker.startup_delay, 3))

    def drain(self) -> RunOutcome:
        """Fold every slot in submission order within the global deadline.

        Raises:
            SchedulerStateError: If launch() has not been called
            BaseException: Any unexpected exception a reducer raised, after
                the pool has been shut down and the aggregator sealed
        """
        self._transition(SchedulerState.RUNNING, SchedulerState.DRAINING)

        deadline = self._clock.monotonic() + self._deadline_seconds
        unexpected: BaseException | None = None

        try:
            for index, resource_id in enumerate(self._resource_ids):
                remaining = deadline - self._clock.monotonic()
                if remaining <= 0 and not self._slots.is_closed:
                    self._slots.close()
                    logger.warning(
                        "deadline_exhausted",
                        deadline_s=self._deadline_seconds,
                        unresolved=len(self._resource_ids) - index,
                    )

                entry = self._slots.wait_for(index, timeout=max(remaining, 0.0))

                if entry is None or entry.completed_at > deadline:
                    failure = ResourceFailure.timeout(resource_id, self._deadline_seconds)
                    logger.warning("worker_timed_out", resource=resource_id, deadline_s=self._deadline_seconds)
                    self._aggregator.fold(PartialResult.failed(failure))
                elif entry.error is not None:
                    logger.error(
                        "worker_crashed",
                        resource=resource_id,
                        error=str(entry.error),
                        error_type=type(entry.error).__name__,
                    )
                    if unexpected is None:
                        unexpected = entry.error
                elif entry.result is not None:
                    self._aggregator.fold(entry.result)
        finally:
            self._finish()

        if unexpected is not None:
            raise unexpected

        outcome = RunOutcome(
            total=self._aggregator.final_total(),
            snapshots=self._aggregator.snapshot_sequence(),
            failures=self._aggregator.failures,
            resource_count=len(self._resource_ids),
        )
        logger.info(
            "run_completed",
            total=outcome.total,
            resources=outcome.resource_count,
            failed=outcome.failed_count,
            timed_out=len(outcome.timed_out),
        )
        return outcome

    def _on_worker_done(self, index: int, future: Future[PartialResult]) -> None:
        """Pool callback: move a finished worker's result into its slot."""
        if future.cancelled():
            return
        error = future.exception()
        if error is None:
            accepted = self._slots.fill(index, future.result())
        else:
            accepted = self._slots.fill_error(index, error)
        if not accepted:
            logger.info("late_result_discarded", resource=self._resource_ids[index], index=index)

    def _finish(self) -> None:
        """Close slots, seal the aggregator and release the pool (-> COMPLETED).

        In-flight workers are not cancelled; they finish on their own and
        their results land in closed slots.
        """
        self._slots.close()
        self._aggregator.seal()
        if self._pool is not None:
            self._pool.shutdown(wait=False)
            logger.debug("worker_pool_shutdown", **self._slots.get_metrics())
        self._state = SchedulerState.COMPLETED

    def _abort(self) -> None:
        if self._pool is not None:
            self._pool.shutdown(wait=False, cancel_futures=True)
        self._slots.close()
        self._aggregator.seal()
        self._state = SchedulerState.COMPLETED

    def _transition(self, expected: SchedulerState, target: SchedulerState) -> None:
        if self._state != expected:
            raise SchedulerStateError(f"Cannot move scheduler to {target.value}: state is {self._state.value}, expected {expected.value}")
        self._state = target
