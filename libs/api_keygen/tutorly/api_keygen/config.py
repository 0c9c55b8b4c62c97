import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from typing import Final

from loguru import logger
from pydantic import ValidationError

from tutorly.api_keygen.data_types import KeygenConfig
from tutorly.api_keygen.errors import ConfigParseError

# Points at a TOML config file when --config is not given.
CONFIG_PATH_ENV_VAR: Final[str] = "TUTORLY_KEYGEN_CONFIG"

# Format: TUTORLY_KEYGEN_<FIELD_NAME>=<value>
_ENV_PREFIX: Final[str] = "TUTORLY_KEYGEN_"

_ENV_VAR_BY_FIELD: Final[dict[str, str]] = {
    "properties_path": f"{_ENV_PREFIX}PROPERTIES_FILE",
    "property_key": f"{_ENV_PREFIX}PROPERTY_KEY",
    "token_length": f"{_ENV_PREFIX}TOKEN_LENGTH",
    "entropy_source": f"{_ENV_PREFIX}ENTROPY_SOURCE",
    "entropy_device_path": f"{_ENV_PREFIX}ENTROPY_DEVICE",
    "write_mode": f"{_ENV_PREFIX}WRITE_MODE",
}

# Settings may live under this table or at the top level of the file.
_CONFIG_TABLE_NAME: Final[str] = "keygen"

# Enum-valued fields accept any casing from files and the environment.
_UPPERCASED_FIELDS: Final[frozenset[str]] = frozenset({"entropy_source", "write_mode"})


def _normalize_values(raw: Mapping[str, Any]) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for name, value in raw.items():
        if name in _UPPERCASED_FIELDS and isinstance(value, str):
            normalized[name] = value.upper()
        else:
            normalized[name] = value
    return normalized


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as config_file:
            return tomllib.load(config_file)
    except FileNotFoundError as e:
        raise ConfigParseError(f"Config file not found: {path}") from e
    except OSError as e:
        raise ConfigParseError(f"Cannot read config file {path}: {e.strerror or e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML in config file {path}: {e}") from e


def read_config_file_values(path: Path) -> dict[str, Any]:
    """Read keygen settings from a TOML file.

    Settings are taken from the [keygen] table when present, otherwise from
    the top level. Relative paths are resolved against the config file's
    directory.
    """
    raw = _load_toml(path)
    table = raw.get(_CONFIG_TABLE_NAME, raw)
    if not isinstance(table, dict):
        raise ConfigParseError(f"[{_CONFIG_TABLE_NAME}] in {path} must be a table")

    values = _normalize_values(table)
    for path_field in ("properties_path", "entropy_device_path"):
        if isinstance(values.get(path_field), str):
            field_path = Path(values[path_field]).expanduser()
            values[path_field] = field_path if field_path.is_absolute() else path.parent / field_path
    return values


def read_env_values(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect keygen settings from TUTORLY_KEYGEN_* environment variables."""
    values: dict[str, Any] = {}
    for field_name, env_var in _ENV_VAR_BY_FIELD.items():
        value = environ.get(env_var)
        if value is not None and value != "":
            values[field_name] = value
    return _normalize_values(values)


def _apply_layer(config: KeygenConfig, values: dict[str, Any], source: str) -> KeygenConfig:
    try:
        return config.merge_with(values)
    except ValidationError as e:
        raise ConfigParseError(f"Invalid keygen settings from {source}: {e}") from e


def load_config(
    config_path: Path | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> KeygenConfig:
    """Load and merge configuration from all sources.

    Precedence (lowest to highest):
    1. Built-in defaults
    2. TOML config file (config_path, or the file named by TUTORLY_KEYGEN_CONFIG)
    3. Environment variables (TUTORLY_KEYGEN_*)
    4. CLI arguments (cli_overrides; None values are ignored)
    """
    env = os.environ if environ is None else environ
    config = KeygenConfig()

    if config_path is None and env.get(CONFIG_PATH_ENV_VAR):
        config_path = Path(env[CONFIG_PATH_ENV_VAR])

    if config_path is not None:
        logger.debug("Loading config file {}", config_path)
        config = _apply_layer(config, read_config_file_values(config_path), str(config_path))

    env_values = read_env_values(env)
    if env_values:
        logger.debug("Applying environment overrides for {}", ", ".join(sorted(env_values)))
        config = _apply_layer(config, env_values, "environment")

    if cli_overrides:
        config = _apply_layer(config, dict(cli_overrides), "command line")

    return config
