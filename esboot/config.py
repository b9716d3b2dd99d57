"""
Configuration for the search container bootstrap.

Loads configuration in three layers:
1. Built-in defaults (the stock Elasticsearch image layout)
2. Optional YAML file (ESBOOT_CONFIG, else /etc/esboot/bootstrap.yaml if present)
3. Environment variable overrides
"""
import logging
import os
import shlex
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from esboot.errors import ConfigError


DEFAULT_DATA_DIR = "/usr/share/elasticsearch/data"
DEFAULT_USER = "elasticsearch"
DEFAULT_GROUP = "elasticsearch"
DEFAULT_DELEGATE_PATH = "/usr/local/bin/docker-entrypoint.sh"
DEFAULT_DELEGATE_ARGS = ["elasticsearch"]
DEFAULT_CONFIG_PATH = Path("/etc/esboot/bootstrap.yaml")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Config field -> environment variable
ENV_OVERRIDES = {
    'data_dir': 'ESBOOT_DATA_DIR',
    'user': 'ESBOOT_USER',
    'group': 'ESBOOT_GROUP',
    'delegate_path': 'ESBOOT_DELEGATE',
    'delegate_args': 'ESBOOT_DELEGATE_ARGS',
    'log_level': 'ESBOOT_LOG_LEVEL',
}


logger = logging.getLogger(__name__)


class BootstrapConfig(BaseModel):
    """Validated bootstrap configuration."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    data_dir: Path = Field(Path(DEFAULT_DATA_DIR), description="Bind-mounted index data directory")
    user: str = Field(DEFAULT_USER, description="Service account user name")
    group: str = Field(DEFAULT_GROUP, description="Service account group name")
    delegate_path: Path = Field(Path(DEFAULT_DELEGATE_PATH), description="Executable handed off to")
    delegate_args: List[str] = Field(default_factory=lambda: list(DEFAULT_DELEGATE_ARGS))
    log_level: str = "INFO"

    @field_validator('data_dir', 'delegate_path')
    @classmethod
    def _require_absolute(cls, value: Path) -> Path:
        if not value.is_absolute():
            raise ValueError(f"must be an absolute path, got '{value}'")
        return value

    @field_validator('user', 'group')
    @classmethod
    def _require_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator('log_level')
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"must be one of {', '.join(LOG_LEVELS)}")
        return value


def _resolve_config_file(path: Optional[Path], environ: Mapping[str, str]) -> Optional[Path]:
    """Pick the YAML file to read, if any. Explicit paths must exist."""
    if path is None and environ.get('ESBOOT_CONFIG'):
        path = Path(environ['ESBOOT_CONFIG'])

    if path is not None:
        path = Path(path).expanduser()
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        return path

    if DEFAULT_CONFIG_PATH.is_file():
        return DEFAULT_CONFIG_PATH
    return None


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Read the config mapping from a YAML file (optionally under 'bootstrap:')."""
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config in {path}: must be a YAML dict")

    if 'bootstrap' in data:
        section = data['bootstrap']
        if not isinstance(section, dict):
            raise ConfigError(f"Invalid config in {path}: 'bootstrap' must be a YAML dict")
        return dict(section)
    return data


def load_config(path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> BootstrapConfig:
    """
    Load bootstrap configuration.

    Args:
        path: Explicit YAML config file (overrides ESBOOT_CONFIG)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        BootstrapConfig instance

    Raises:
        ConfigError: If the file is missing or invalid, or a value fails validation
    """
    environ = os.environ if environ is None else environ

    values: Dict[str, Any] = {}
    config_file = _resolve_config_file(path, environ)
    if config_file is not None:
        values.update(_read_yaml(config_file))
        logger.debug(f"Loaded config file {config_file}")

    for field, env_name in ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is None:
            continue
        if field == 'delegate_args':
            try:
                values[field] = shlex.split(raw)
            except ValueError as e:
                raise ConfigError(f"Invalid {env_name}: {e}") from e
        else:
            values[field] = raw

    try:
        return BootstrapConfig(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid bootstrap configuration:\n{e}") from e


def get_config() -> BootstrapConfig:
    """Get bootstrap configuration from the process environment."""
    return load_config()
