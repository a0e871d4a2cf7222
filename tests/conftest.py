# tests/conftest.py
"""Shared test fixtures and helpers.

Fixtures:
- write_resources: write resource<N>.txt files into a temporary directory
- mapping_reducer: build a ResourceReducer from a dict of canned outcomes
- gated_reducer: reducer whose resources only finish when the test says so

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable, Hashable, Iterator, Mapping
from pathlib import Path

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings

# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # thread scheduling makes timings vary
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Keep structlog and root-handler configuration from leaking between tests."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    structlog.reset_defaults()
    root.handlers = handlers
    root.setLevel(level)


# =============================================================================
# Resource helpers
# =============================================================================


@pytest.fixture
def write_resources(tmp_path: Path) -> Callable[[Mapping[int, str]], Path]:
    """Write {id: text} as resource<id>.txt files and return the directory."""

    def _write(contents: Mapping[int, str]) -> Path:
        directory = tmp_path / "resources"
        directory.mkdir(exist_ok=True)
        for resource_id, text in contents.items():
            (directory / f"resource{resource_id}.txt").write_text(text, encoding="utf-8")
        return directory

    return _write


@pytest.fixture
def mapping_reducer() -> Callable[[Mapping[Hashable, int | BaseException]], Callable[[Hashable], int]]:
    """Reducer returning canned values, or raising canned exceptions."""

    def _build(outcomes: Mapping[Hashable, int | BaseException]) -> Callable[[Hashable], int]:
        def _reduce(resource_id: Hashable) -> int:
            outcome = outcomes[resource_id]
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome

        return _reduce

    return _build


class GatedReducer:
    """Reducer that blocks each resource until its gate is opened.

    Records the order in which resources actually finished, so tests can
    force completion order to differ from submission order.
    """

    def __init__(self, values: Mapping[Hashable, int]) -> None:
        self._values = dict(values)
        self.gates = {rid: threading.Event() for rid in values}
        self.started = {rid: threading.Event() for rid in values}
        self.finished: list[Hashable] = []
        self._lock = threading.Lock()

    def __call__(self, resource_id: Hashable) -> int:
        self.started[resource_id].set()
        self.gates[resource_id].wait(timeout=30)
        with self._lock:
            self.finished.append(resource_id)
        return self._values[resource_id]

    def release(self, resource_id: Hashable) -> None:
        self.gates[resource_id].set()

    def release_all(self) -> None:
        for gate in self.gates.values():
            gate.set()


@pytest.fixture
def gated_reducer() -> Iterator[Callable[[Mapping[Hashable, int]], GatedReducer]]:
    """Factory for GatedReducer; every gate is opened at teardown."""
    created: list[GatedReducer] = []

    def _build(values: Mapping[Hashable, int]) -> GatedReducer:
        reducer = GatedReducer(values)
        created.append(reducer)
        return reducer

    yield _build

    # Never leave pool threads blocked past the test
    for reducer in created:
        reducer.release_all()


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll predicate until true or timeout; returns the final result."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.fixture
def until() -> Callable[..., bool]:
    return wait_until
