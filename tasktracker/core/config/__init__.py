"""Configuration package for tasktracker.

This package provides Pydantic configuration models and loading utilities.
"""

from tasktracker.core.config.loader import (
    check_unexpanded_vars,
    expand_env_vars,
    expand_env_vars_recursive,
    load_config,
)
from tasktracker.core.config.models import (
    ApiConfig,
    Config,
    HistoryConfig,
    LoggingConfig,
    StorageConfig,
)

__all__ = [
    # Models
    "ApiConfig",
    "Config",
    "HistoryConfig",
    "LoggingConfig",
    "StorageConfig",
    # Loaders
    "check_unexpanded_vars",
    "expand_env_vars",
    "expand_env_vars_recursive",
    "load_config",
]
