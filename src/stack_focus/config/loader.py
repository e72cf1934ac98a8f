"""Configuration loader with YAML parsing and environment variable substitution."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..utils.errors import ConfigError
from .schema import FocusConfig


def substitute_env_vars(text: str) -> str:
    """
    Replace ${VAR_NAME} patterns with environment variable values.

    Args:
        text: Text containing ${VAR_NAME} patterns

    Returns:
        Text with environment variables substituted

    Raises:
        ConfigError: If a referenced environment variable is not found
    """

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(f"Environment variable {var_name} not found")
        return value

    return re.sub(r"\$\{([^}]+)\}", replacer, text)


def load_config(path: Path) -> FocusConfig:
    """
    Load configuration from YAML file with environment variable substitution.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated FocusConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigError: If the file is not valid YAML, references missing
            environment variables, or doesn't match the schema
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with path.open() as f:
        raw_yaml = f.read()

    yaml_with_env = substitute_env_vars(raw_yaml)

    try:
        config_dict = yaml.safe_load(yaml_with_env)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if config_dict is None:
        config_dict = {}
    if not isinstance(config_dict, dict):
        raise ConfigError(f"Configuration in {path} must be a mapping")

    try:
        return FocusConfig(**config_dict)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def default_config() -> FocusConfig:
    """Build the configuration from defaults and environment variables only.

    Raises:
        ConfigError: If an environment override is invalid
    """
    try:
        return FocusConfig()
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
