# tests/unit/engine/test_aggregator.py
"""Tests for Aggregator: fold, snapshots, failures, seal and live iteration."""

from __future__ import annotations

import threading

import pytest

from evensum.contracts import FailureKind, PartialResult, ResourceFailure
from evensum.engine.aggregator import Aggregator, AggregatorSealedError


def _failed(resource_id: int, kind: FailureKind = FailureKind.PARSE) -> PartialResult:
    return PartialResult.failed(ResourceFailure(resource_id=resource_id, kind=kind, message="bad"))


class TestFold:
    def test_fold_returns_new_total(self) -> None:
        aggregator = Aggregator()
        assert aggregator.fold(PartialResult.success(1, 2)) == 2
        assert aggregator.fold(PartialResult.success(2, 10)) == 12
        assert aggregator.fold(PartialResult.success(3, 8)) == 20

    def test_snapshot_sequence_follows_fold_order(self) -> None:
        aggregator = Aggregator()
        for resource_id, value in [(1, 2), (2, 10), (3, 8)]:
            aggregator.fold(PartialResult.success(resource_id, value))
        assert aggregator.snapshot_sequence() == (2, 12, 20)
        assert aggregator.final_total() == 20

    def test_failure_adds_nothing_and_appends_no_snapshot(self) -> None:
        aggregator = Aggregator()
        aggregator.fold(PartialResult.success(1, 4))

        assert aggregator.fold(_failed(2)) == 4

        assert aggregator.snapshot_sequence() == (4,)
        assert aggregator.failures == (ResourceFailure(resource_id=2, kind=FailureKind.PARSE, message="bad"),)

    def test_zero_contribution_still_appends_snapshot(self) -> None:
        aggregator = Aggregator()
        aggregator.fold(PartialResult.success(1, 0))
        assert aggregator.snapshot_sequence() == (0,)
        assert aggregator.failures == ()

    def test_all_failed_total_is_zero(self) -> None:
        aggregator = Aggregator()
        aggregator.fold(_failed(1, FailureKind.IO))
        aggregator.fold(_failed(2, FailureKind.TIMEOUT))
        aggregator.seal()
        assert aggregator.final_total() == 0
        assert len(aggregator.failures) == 2

    def test_fold_after_seal_rejected(self) -> None:
        aggregator = Aggregator()
        aggregator.fold(PartialResult.success(1, 2))
        aggregator.seal()

        with pytest.raises(AggregatorSealedError):
            aggregator.fold(PartialResult.success(2, 6))

        assert aggregator.final_total() == 2
        assert aggregator.snapshot_sequence() == (2,)

    def test_final_total_is_idempotent_after_seal(self) -> None:
        aggregator = Aggregator()
        aggregator.fold(PartialResult.success(1, 6))
        aggregator.seal()
        assert {aggregator.final_total() for _ in range(5)} == {6}
        assert aggregator.is_sealed


class TestLive:
    def test_live_yields_existing_then_stops_at_seal(self) -> None:
        aggregator = Aggregator()
        aggregator.fold(PartialResult.success(1, 2))
        aggregator.fold(PartialResult.success(2, 10))
        aggregator.seal()
        assert list(aggregator.live()) == [2, 12]

    def test_live_blocks_until_next_snapshot(self) -> None:
        aggregator = Aggregator()
        received: list[int] = []

        def consume() -> None:
            received.extend(aggregator.live(timeout=5.0))

        consumer = threading.Thread(target=consume)
        consumer.start()
        aggregator.fold(PartialResult.success(1, 2))
        aggregator.fold(_failed(2))
        aggregator.fold(PartialResult.success(3, 8))
        aggregator.seal()
        consumer.join(timeout=5.0)

        assert not consumer.is_alive()
        assert received == [2, 10]

    def test_independent_iterators_see_full_sequence(self) -> None:
        aggregator = Aggregator()
        aggregator.fold(PartialResult.success(1, 4))
        first = aggregator.live()
        assert next(first) == 4
        aggregator.fold(PartialResult.success(2, 6))
        aggregator.seal()
        assert list(first) == [10]
        assert list(aggregator.live()) == [4, 10]

    def test_live_timeout(self) -> None:
        aggregator = Aggregator()
        with pytest.raises(TimeoutError):
            next(aggregator.live(timeout=0.05))

    def test_empty_sealed_aggregator_yields_nothing(self) -> None:
        aggregator = Aggregator()
        aggregator.seal()
        assert list(aggregator.live()) == []
