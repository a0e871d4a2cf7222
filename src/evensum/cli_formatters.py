# src/evensum/cli_formatters.py
"""Console and JSON rendering of live totals and run outcomes."""

from __future__ import annotations

import json
from collections.abc import Callable

import typer

from evensum.contracts import ResourceFailure, RunOutcome


def format_failure(failure: ResourceFailure) -> str:
    return f"resource {failure.resource_id}: {failure.kind.value}: {failure.message}"


def create_console_formatters() -> tuple[Callable[[int], None], Callable[[RunOutcome], None]]:
    """Handlers for human-readable output: (on_snapshot, on_outcome)."""

    def _format_snapshot(total: int) -> None:
        typer.echo(total)

    def _format_outcome(outcome: RunOutcome) -> None:
        typer.echo(f"TOTAL: {outcome.total}")
        if outcome.failures:
            typer.secho(
                f"{outcome.failed_count} of {outcome.resource_count} resources contributed nothing:",
                fg=typer.colors.YELLOW,
                err=True,
            )
            for failure in outcome.failures:
                typer.echo(f"  {format_failure(failure)}", err=True)

    return _format_snapshot, _format_outcome


def create_json_formatters() -> tuple[Callable[[int], None], Callable[[RunOutcome], None]]:
    """Handlers for line-delimited JSON output: (on_snapshot, on_outcome)."""

    def _format_snapshot(total: int) -> None:
        typer.echo(json.dumps({"event": "snapshot", "total": total}))

    def _format_outcome(outcome: RunOutcome) -> None:
        typer.echo(
            json.dumps(
                {
                    "event": "outcome",
                    "total": outcome.total,
                    "resource_count": outcome.resource_count,
                    "snapshots": list(outcome.snapshots),
                    "failures": [
                        {"resource_id": str(f.resource_id), "kind": f.kind.value, "message": f.message} for f in outcome.failures
                    ],
                }
            )
        )

    return _format_snapshot, _format_outcome
