"""Configuration loading and management for event-reporter.

Configuration sources are merged in priority order:
    1. Defaults (defined in StoreConfig)
    2. Global config (~/.event-reporter.toml)
    3. Project config (./event-reporter.toml)
    4. Explicit config file
    5. Environment variables (EVENT_REPORTER_* prefix)
    6. Overrides (passed as kwargs)

Example:
    >>> config = load_config(db_path="/var/lib/event-reporter/events.db")
    >>> config.key_precision
    'microsecond'
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional, Union, get_args, get_origin, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

PrecisionName = Literal["second", "millisecond", "microsecond"]
SynchronousMode = Literal["OFF", "NORMAL", "FULL", "EXTRA"]
Verbosity = Literal["quiet", "normal", "verbose"]

PRECISION_NAMES = ("second", "millisecond", "microsecond")
SYNCHRONOUS_MODES = ("OFF", "NORMAL", "FULL", "EXTRA")
VERBOSITY_LEVELS = ("quiet", "normal", "verbose")

ENV_PREFIX = "EVENT_REPORTER_"


@dataclass(frozen=True)
class StoreConfig:
    """Configuration for an event store file.

    Attributes:
        db_path: Location of the store file
        key_precision: Timestamp truncation used for keys written by ``add``.
            Coarser precision makes key collisions (and overwrites) likelier.
        legacy_key_precision: Timestamp truncation used by ``queue``, the
            legacy write path. Legacy producers truncated to whole seconds.
        lock_timeout_seconds: How long ``open`` waits for the file lock
        synchronous: SQLite ``PRAGMA synchronous`` level
        verbosity: Logging verbosity for the CLI
        log_file: File that also receives the CLI log, if set
    """

    db_path: str = "events.db"
    key_precision: PrecisionName = "microsecond"
    legacy_key_precision: PrecisionName = "second"
    lock_timeout_seconds: float = 5.0
    synchronous: SynchronousMode = "FULL"
    verbosity: Verbosity = "normal"
    log_file: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.db_path:
            raise InvalidConfigError("db_path", self.db_path, "must not be empty")
        for field_name in ("key_precision", "legacy_key_precision"):
            value = getattr(self, field_name)
            if value not in PRECISION_NAMES:
                raise InvalidConfigError(
                    field_name, value, f"expected one of {', '.join(PRECISION_NAMES)}"
                )
        if self.lock_timeout_seconds < 0:
            raise InvalidConfigError(
                "lock_timeout_seconds", self.lock_timeout_seconds, "must be non-negative"
            )
        if self.synchronous not in SYNCHRONOUS_MODES:
            raise InvalidConfigError(
                "synchronous", self.synchronous, f"expected one of {', '.join(SYNCHRONOUS_MODES)}"
            )
        if self.verbosity not in VERBOSITY_LEVELS:
            raise InvalidConfigError(
                "verbosity", self.verbosity, f"expected one of {', '.join(VERBOSITY_LEVELS)}"
            )


def load_config(config_file: Optional[Path] = None, **overrides) -> StoreConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options do not mask file values.

    Returns:
        Validated StoreConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
        InvalidConfigError: If a merged value fails validation
    """
    merged: dict = {}

    global_config = Path.home() / ".event-reporter.toml"
    if global_config.exists():
        try:
            merged.update(_load_toml_file(global_config))
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid global config '{global_config}': {e}")

    project_config = Path.cwd() / "event-reporter.toml"
    if project_config.exists():
        try:
            merged.update(_load_toml_file(project_config))
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid project config '{project_config}': {e}")

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        try:
            merged.update(_load_toml_file(config_file))
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Invalid config file '{config_file}': {e}")

    merged.update(_load_env_vars())

    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"

    merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return StoreConfig(**merged)
    except TypeError as e:
        # Unknown field in config
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from EVENT_REPORTER_* environment variables.

    Supported environment variables:
        EVENT_REPORTER_DB_PATH: str
        EVENT_REPORTER_KEY_PRECISION: second/millisecond/microsecond
        EVENT_REPORTER_LEGACY_KEY_PRECISION: second/millisecond/microsecond
        EVENT_REPORTER_LOCK_TIMEOUT_SECONDS: float
        EVENT_REPORTER_SYNCHRONOUS: OFF/NORMAL/FULL/EXTRA
        EVENT_REPORTER_VERBOSITY: quiet/normal/verbose
        EVENT_REPORTER_LOG_FILE: str
    """
    type_hints = get_type_hints(StoreConfig)

    result: dict[str, Any] = {}

    for field_name in StoreConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise ConfigurationError(f"Invalid {env_key}: {e}")
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = get_origin(type_hint)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    if origin is Union and str in get_args(type_hint):
        return value or None

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigurationError: If tomllib/tomli not available
        Exception: If TOML parsing fails
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
