# src/evensum/cli.py
"""Evensum Command Line Interface.

Entry point for the evensum CLI tool.
"""

from __future__ import annotations

import random
from pathlib import Path

import typer
from pydantic import ValidationError

from evensum import __version__
from evensum.contracts import PoolStartupError, TimeUnit

__all__ = ["app"]

app = typer.Typer(
    name="evensum",
    help="Evensum: concurrent sum of positive even values across resources.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"evensum version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from a .env file.

    Raises:
        typer.Exit: If an explicit env_file does not exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(f"Error: .env file not found: {env_file}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)


def _fail(message: str) -> typer.Exit:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    return typer.Exit(1)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs.",
    ),
) -> None:
    """Evensum: concurrent sum of positive even values across resources."""
    from evensum.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")

    if not no_dotenv:
        _load_dotenv(env_file.expanduser() if env_file is not None else None)


@app.command()
def run(
    settings_path: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    resources_dir: Path | None = typer.Option(
        None,
        "--resources-dir",
        help="Directory of resource<N>.txt files.",
    ),
    deadline: float | None = typer.Option(
        None,
        "--deadline",
        help="Global completion deadline magnitude.",
    ),
    deadline_unit: TimeUnit | None = typer.Option(
        None,
        "--deadline-unit",
        help="Unit of --deadline.",
    ),
    max_delay_ms: int | None = typer.Option(
        None,
        "--max-delay-ms",
        help="Upper bound of each worker's random startup delay.",
    ),
    seed: int | None = typer.Option(
        None,
        "--seed",
        help="Seed for reproducible startup delays and generation.",
    ),
    no_generate: bool = typer.Option(
        False,
        "--no-generate",
        help="Never generate resources, even if too few exist.",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit snapshots and outcome as JSON lines.",
    ),
) -> None:
    """Sum positive even values across all resources, printing live totals."""
    from evensum.cli_formatters import create_console_formatters, create_json_formatters
    from evensum.core.config import RunSettings, load_settings, resolve_config
    from evensum.core.logging import get_logger
    from evensum.engine import RunController
    from evensum.resources import TextFileReducer, prepare_resources

    logger = get_logger(__name__)

    overrides = {
        "resources_dir": resources_dir.expanduser() if resources_dir is not None else None,
        "deadline": deadline,
        "deadline_unit": deadline_unit,
        "max_startup_delay_ms": max_delay_ms,
        "seed": seed,
    }
    try:
        settings = load_settings(settings_path.expanduser() if settings_path is not None else None)
        settings = RunSettings.model_validate({**settings.model_dump(), **{k: v for k, v in overrides.items() if v is not None}})
    except FileNotFoundError as e:
        raise _fail(str(e)) from e
    except ValidationError as e:
        raise _fail(f"Invalid settings:\n{e}") from e

    logger.debug("settings_resolved", **resolve_config(settings))

    try:
        resource_ids = prepare_resources(settings, generate=not no_generate)
    except OSError as e:
        raise _fail(f"Cannot prepare resources in {settings.resources_dir}: {e}") from e

    controller = RunController.from_settings(settings, resource_ids, TextFileReducer(settings.resources_dir))
    on_snapshot, on_outcome = create_json_formatters() if json_output else create_console_formatters()

    try:
        controller.start()
    except PoolStartupError as e:
        raise _fail(str(e)) from e

    for total in controller.live_totals():
        on_snapshot(total)
    on_outcome(controller.wait())


@app.command()
def generate(
    directory: Path = typer.Argument(..., help="Directory to write resource files into."),
    count: int = typer.Option(7, "--count", "-n", min=0, help="Number of resources."),
    values: int = typer.Option(7, "--values", min=0, help="Integers per resource."),
    seed: int | None = typer.Option(None, "--seed", help="Random seed."),
) -> None:
    """Write synthetic resource files of random signed integers."""
    from evensum.resources import generate_resources

    ids = generate_resources(directory.expanduser(), count, values, random.Random(seed))
    typer.echo(f"Generated {len(ids)} resources in {directory}")


if __name__ == "__main__":
    app()
