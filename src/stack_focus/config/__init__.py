"""Configuration loading and validation."""

from .loader import default_config, load_config, substitute_env_vars
from .schema import (
    FileLoggingConfig,
    FocusConfig,
    LoggingConfig,
    RenameRuleConfig,
    ReportConfig,
    RuntimeConfig,
)

__all__ = [
    # Loader
    "default_config",
    "load_config",
    "substitute_env_vars",
    # Root config
    "FocusConfig",
    # Sections
    "FileLoggingConfig",
    "LoggingConfig",
    "RenameRuleConfig",
    "ReportConfig",
    "RuntimeConfig",
]
