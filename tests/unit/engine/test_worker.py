# tests/unit/engine/test_worker.py
"""Tests for Worker: startup delay, reducer invocation, failure capture."""

from __future__ import annotations

import random
from collections.abc import Hashable

import pytest

from evensum.contracts import FailureKind, IOFailure, ParseFailure
from evensum.engine.worker import Worker


def _constant(value: int):
    def _reduce(resource_id: Hashable) -> int:
        return value

    return _reduce


def _raising(error: BaseException):
    def _reduce(resource_id: Hashable) -> int:
        raise error

    return _reduce


class TestWorkerDelay:
    def test_no_delay_when_bound_is_zero(self) -> None:
        sleeps: list[float] = []
        worker = Worker(1, _constant(4), max_delay_seconds=0.0, sleep=sleeps.append)
        worker.run()
        assert worker.startup_delay == 0.0
        assert sleeps == []

    def test_delay_is_within_half_open_bound(self) -> None:
        rng = random.Random(42)
        for _ in range(200):
            worker = Worker(1, _constant(0), max_delay_seconds=0.3, rng=rng)
            assert 0.0 <= worker.startup_delay < 0.3

    def test_delay_is_slept_before_reducing(self) -> None:
        events: list[str] = []

        def reducer(resource_id: Hashable) -> int:
            events.append("reduce")
            return 2

        worker = Worker(1, reducer, max_delay_seconds=1.0, rng=random.Random(7), sleep=lambda s: events.append("sleep"))
        worker.run()
        assert events == ["sleep", "reduce"]

    def test_seeded_rng_reproduces_delays(self) -> None:
        def delays(seed: int) -> list[float]:
            rng = random.Random(seed)
            return [Worker(i, _constant(0), max_delay_seconds=2.0, rng=rng).startup_delay for i in range(5)]

        assert delays(3) == delays(3)
        assert delays(3) != delays(4)

    def test_negative_bound_rejected(self) -> None:
        with pytest.raises(ValueError, match="max_delay_seconds"):
            Worker(1, _constant(0), max_delay_seconds=-1.0)


class TestWorkerResults:
    def test_success(self) -> None:
        result = Worker(9, _constant(20)).run()
        assert result.ok
        assert result.value == 20
        assert result.resource_id == 9

    def test_io_failure_reported(self) -> None:
        result = Worker(1, _raising(IOFailure(1, "cannot read resource1.txt"))).run()
        assert not result.ok
        assert result.value == 0
        assert result.failure is not None
        assert result.failure.kind == FailureKind.IO

    def test_parse_failure_reported(self) -> None:
        result = Worker(2, _raising(ParseFailure(2, "invalid integer token '12a'"))).run()
        assert result.failure is not None
        assert result.failure.kind == FailureKind.PARSE
        assert "12a" in result.failure.message

    def test_raw_os_error_becomes_io_failure(self) -> None:
        result = Worker(3, _raising(FileNotFoundError(2, "No such file"))).run()
        assert result.failure is not None
        assert result.failure.kind == FailureKind.IO
        assert result.failure.resource_id == 3

    def test_raw_value_error_becomes_parse_failure(self) -> None:
        result = Worker(4, _raising(ValueError("invalid literal for int()"))).run()
        assert result.failure is not None
        assert result.failure.kind == FailureKind.PARSE

    def test_negative_reducer_result_is_a_failure(self) -> None:
        result = Worker(5, _constant(-8)).run()
        assert not result.ok
        assert result.failure is not None
        assert result.failure.kind == FailureKind.PARSE

    def test_unexpected_exception_propagates(self) -> None:
        """Bugs in a reducer are not disguised as resource failures."""
        with pytest.raises(TypeError, match="boom"):
            Worker(6, _raising(TypeError("boom"))).run()
