"""Application configuration helpers."""

from __future__ import annotations

from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError, UnknownEntityError
from .logging import configure_logging
from .mappings import (
    CONFIG_PATH_ENV,
    DEFAULT_HISTORY_TABLE_SUFFIX,
    HistoryConfiguration,
    load_configuration,
    load_mapping_document,
    resolve_mappings,
)

__all__ = [
    "CONFIG_PATH_ENV",
    "DEFAULT_HISTORY_TABLE_SUFFIX",
    "ConfigurationError",
    "HistoryConfiguration",
    "MissingConfigurationError",
    "UnknownEntityError",
    "configure_logging",
    "load_configuration",
    "load_mapping_document",
    "require_env_var",
    "require_env_vars",
    "resolve_mappings",
]
