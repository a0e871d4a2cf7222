# src/evensum/core/config.py
"""Run configuration.

Settings are validated by pydantic and loaded through Dynaconf, which
layers EVENSUM_* environment variables over an optional YAML file.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from evensum.contracts import TimeUnit


class RunSettings(BaseModel):
    """Validated settings for one aggregation run.

    Attributes:
        resources_dir: Directory holding resource<N>.txt files
        default_resource_count: Fewer resources than this triggers generation
        values_per_resource: Integers written per generated resource
        max_startup_delay_ms: Exclusive upper bound of each worker's random startup delay
        deadline: Magnitude of the global completion deadline
        deadline_unit: Unit of deadline
        seed: Seed for startup delays and generation (None = nondeterministic)
    """

    model_config = {"extra": "forbid", "frozen": True}

    resources_dir: Path = Field(default=Path("resources"), description="Directory of resource files")
    default_resource_count: int = Field(default=7, ge=0, description="Minimum number of resources before generating")
    values_per_resource: int = Field(default=7, ge=0, description="Integers per generated resource")
    max_startup_delay_ms: int = Field(default=4000, ge=0, description="Per-worker startup delay bound in milliseconds")
    deadline: float = Field(default=1.0, gt=0, description="Global completion deadline")
    deadline_unit: TimeUnit = Field(default=TimeUnit.MINUTES, description="Unit of the deadline")
    seed: int | None = Field(default=None, description="Random seed for reproducible runs")

    @property
    def deadline_seconds(self) -> float:
        return self.deadline_unit.to_seconds(self.deadline)

    @property
    def max_startup_delay_seconds(self) -> float:
        return self.max_startup_delay_ms / 1000


# ${VAR} or ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Expand ${VAR} and ${VAR:-default} in string values.

    Unset variables without a default are left as written.
    """

    def replacer(match: re.Match[str]) -> str:
        env_value = os.environ.get(match.group(1))
        if env_value is not None:
            return env_value
        default = match.group(2)
        return default if default is not None else match.group(0)

    return {k: _ENV_VAR_PATTERN.sub(replacer, v) if isinstance(v, str) else v for k, v in config.items()}


def load_settings(config_path: Path | None = None) -> RunSettings:
    """Load settings from an optional YAML file with environment overrides.

    Precedence, highest first:
    1. Environment variables (EVENSUM_DEADLINE, EVENSUM_RESOURCES_DIR, ...)
    2. Config file
    3. Defaults from RunSettings

    Raises:
        FileNotFoundError: If config_path is given but does not exist
        ValidationError: If the merged configuration is invalid
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="EVENSUM",
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys and mixes in its own settings
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES", "SETTINGS_FILE", "ENVVAR_PREFIX", "MERGE_ENABLED"}
    raw_config = {
        k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys and not k.endswith("_FOR_DYNACONF")
    }
    raw_config = _expand_env_vars(raw_config)

    return RunSettings(**raw_config)


def resolve_config(settings: RunSettings) -> dict[str, Any]:
    """JSON-safe view of the effective settings, for logging."""
    resolved = settings.model_dump(mode="json")
    resolved["deadline_seconds"] = settings.deadline_seconds
    return resolved
