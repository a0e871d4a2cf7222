# src/evensum/resources/catalog.py
"""Discovery and synthetic generation of resource files."""

from __future__ import annotations

import random
import re
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from evensum.resources.reducer import RESOURCE_FILE_TEMPLATE

if TYPE_CHECKING:
    from evensum.core.config import RunSettings

logger = structlog.get_logger(__name__)

# No zero padding, so every discovered name is the one path_for builds
_RESOURCE_NAME = re.compile(r"resource([1-9][0-9]*)\.txt")

# Generated magnitudes stay within a signed 32-bit range
MAX_GENERATED_MAGNITUDE = 2**31 - 1


def discover_resources(directory: Path) -> list[int]:
    """Ids of the resource<N>.txt files in directory, in ascending order.

    A missing directory has no resources.
    """
    if not directory.is_dir():
        return []
    ids = []
    for path in directory.iterdir():
        match = _RESOURCE_NAME.fullmatch(path.name)
        if match is not None and path.is_file():
            ids.append(int(match.group(1)))
    return sorted(ids)


def generate_resources(
    directory: Path,
    count: int,
    values_per_resource: int,
    rng: random.Random | None = None,
) -> list[int]:
    """Write resource1.txt .. resource<count>.txt with random signed integers.

    Each file holds one integer per line. Existing files with the same
    names are overwritten.

    Returns:
        The ids written, 1..count.
    """
    if count < 0 or values_per_resource < 0:
        raise ValueError(f"count and values_per_resource must be >= 0, got {count} and {values_per_resource}")
    rng = rng or random.Random()
    directory.mkdir(parents=True, exist_ok=True)

    ids = list(range(1, count + 1))
    for resource_id in ids:
        values = [rng.randrange(MAX_GENERATED_MAGNITUDE) * rng.choice((1, -1)) for _ in range(values_per_resource)]
        path = directory / RESOURCE_FILE_TEMPLATE.format(id=resource_id)
        path.write_text("".join(f"{v}\n" for v in values), encoding="utf-8")
    logger.info("resources_generated", directory=str(directory), count=count, values_per_resource=values_per_resource)
    return ids


def prepare_resources(settings: RunSettings, *, generate: bool = True) -> list[int]:
    """Resource ids for a run, generating a default set if too few exist.

    When fewer than settings.default_resource_count files are present and
    generate is True, that many resources are generated first.
    """
    ids = discover_resources(settings.resources_dir)
    if len(ids) >= settings.default_resource_count or not generate:
        logger.info("resources_discovered", directory=str(settings.resources_dir), count=len(ids))
        return ids

    logger.debug(
        "too_few_resources",
        found=len(ids),
        required=settings.default_resource_count,
    )
    rng = random.Random(settings.seed)
    return generate_resources(
        settings.resources_dir,
        settings.default_resource_count,
        settings.values_per_resource,
        rng,
    )
