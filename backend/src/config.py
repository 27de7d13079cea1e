import os
import re
from pathlib import Path
from typing import Any, Optional

import toml

CONFIG_FILE_NAME = "config.toml"
CONFIG_ENV_VAR = "RAG_CONFIG_PATH"
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


def resolve_path(path: str | Path, config_path: Path) -> Path:
    """Resolve a path relative to the config file's parent directory.

    Args:
        path: The path to resolve (absolute or relative).
        config_path: Path to the configuration file.

    Returns:
        Resolved absolute path.
    """
    path = Path(path)
    if path.is_absolute():
        return path
    return (config_path.parent / path).resolve()


def find_config_path(explicit_path: Optional[Path] = None) -> Path:
    """Locate config.toml: explicit path, then $RAG_CONFIG_PATH, then the usual places."""
    if explicit_path:
        return Path(explicit_path)
    if os.environ.get(CONFIG_ENV_VAR):
        return Path(os.environ[CONFIG_ENV_VAR])

    candidates = [
        Path(CONFIG_FILE_NAME),
        Path(__file__).parent.parent.parent / CONFIG_FILE_NAME,
    ]
    for path in candidates:
        if path.exists():
            return path
    raise FileNotFoundError(f"{CONFIG_FILE_NAME} not found")


def load_config(config_path: Path | str = Path(CONFIG_FILE_NAME)) -> dict[str, Any]:
    """Load configuration from TOML file with environment variable substitution.

    Supports ${ENV_VAR} and ${ENV_VAR:-default} syntax in string values.
    """
    return _substitute_env_vars(toml.load(config_path))


def _substitute_env_vars(value: Any) -> Any:
    if isinstance(value, str):
        return ENV_VAR_PATTERN.sub(
            lambda m: os.environ.get(m.group(1), m.group(2) or ""), value
        )
    if isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def get_config_value(config: dict, key_path: str, default: Any = None) -> Any:
    """Get a nested config value using dot notation.

    Args:
        config: Configuration dictionary.
        key_path: Dot-separated path (e.g., "retrieval.top_k").
        default: Default value if key not found.

    Returns:
        The config value or default.
    """
    value: Any = config
    for key in key_path.split("."):
        if not isinstance(value, dict) or key not in value:
            return default
        value = value[key]
    return value


def get_storage_dir(config: dict, config_path: Path) -> Path:
    """Storage directory from ``[storage] directory``, relative to the config file."""
    return resolve_path(get_config_value(config, "storage.directory", "storage"), config_path)
