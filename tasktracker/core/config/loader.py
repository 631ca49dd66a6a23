"""Load tasktracker settings from YAML.

String values may reference environment variables as ``${NAME}``; every
reference must resolve or loading fails.
"""

import os
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from tasktracker.core.config.models import Config

_ENV_REF = re.compile(r"\$\{([^}]+)\}")


def _map_strings(obj: Any, func: Callable[[str], Any]) -> Any:
    """Apply ``func`` to every string inside nested dicts and lists."""
    if isinstance(obj, dict):
        return {key: _map_strings(value, func) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_map_strings(item, func) for item in obj]
    if isinstance(obj, str):
        return func(obj)
    return obj


def expand_env_vars(value: str) -> str:
    """Substitute ``${NAME}`` references from os.environ.

    References to unset variables are kept as written so that
    check_unexpanded_vars can report them.
    """
    return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)


def expand_env_vars_recursive(obj: Any) -> Any:
    return _map_strings(obj, expand_env_vars)


def check_unexpanded_vars(data: Any, source: str) -> None:
    """Fail if any ``${NAME}`` reference survived expansion.

    Args:
        data: Settings after expansion.
        source: Where the settings came from, used in the message.

    Raises:
        ValueError: Listing every unresolved variable name.
    """
    names: set[str] = set()
    _map_strings(data, lambda s: names.update(_ENV_REF.findall(s)))
    if names:
        listed = ", ".join(f"${{{name}}}" for name in sorted(names))
        raise ValueError(f"Unresolved environment variable(s) in {source}: {listed}")


def load_config(path: Path | str) -> Config:
    """Read a YAML settings file into a Config.

    An empty file yields the defaults.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If an environment variable reference is unresolved.
        yaml.YAMLError: If the file is not valid YAML.
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    data = expand_env_vars_recursive(yaml.safe_load(config_path.read_text(encoding="utf-8")) or {})
    check_unexpanded_vars(data, source=str(config_path))
    return Config(**data)
