# src/evensum/engine/__init__.py
"""Concurrent aggregation engine."""

from evensum.engine.aggregator import Aggregator, AggregatorSealedError
from evensum.engine.clock import DEFAULT_CLOCK, Clock, MockClock, SystemClock
from evensum.engine.controller import RunController
from evensum.engine.scheduler import Scheduler
from evensum.engine.slots import ResultSlots, SlotEntry
from evensum.engine.worker import ResourceReducer, Worker

__all__ = [
    "DEFAULT_CLOCK",
    "Aggregator",
    "AggregatorSealedError",
    "Clock",
    "MockClock",
    "ResourceReducer",
    "ResultSlots",
    "RunController",
    "Scheduler",
    "SlotEntry",
    "SystemClock",
    "Worker",
]
