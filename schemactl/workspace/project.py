"""
Project config file (schemactl.yml) access.
"""

import logging
import re
from pathlib import Path

from schemactl.errors import CliError, ConfigError, SchemaValidationError
from schemactl.schemas import ProjectConfig, SchemaConfig

from .paths import get_config_path
from .yaml_io import read_yaml, write_yaml

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_INVALID_LOCAL_KEY_CHARS = re.compile(r"[^a-z0-9._-]")


def normalize_schema_name(name: str) -> str:
    """
    Derive a local key from a remote schema name.

    Lowercases, turns whitespace runs into "_" and drops anything outside
    [a-z0-9._-]. "My Schema (v2)" becomes "my_schema_v2".
    """
    lowered = _WHITESPACE.sub("_", name.strip().lower())
    return _INVALID_LOCAL_KEY_CHARS.sub("", lowered)


def read_config(project_root: Path) -> ProjectConfig:
    """
    Load and validate schemactl.yml.

    Raises:
        CliError: If the file is missing, unparsable or has the wrong shape
    """
    config_path = get_config_path(project_root)
    if not config_path.is_file():
        raise CliError(
            "Config Not Found",
            f"No {config_path.name} found in {project_root}",
            suggestions=["Run 'schemactl init' to initialize a project"],
        )

    try:
        data = read_yaml(config_path)
        if not data:
            raise ConfigError("Configuration file is empty")
        return ProjectConfig.from_dict(data)
    except (ConfigError, SchemaValidationError) as e:
        raise CliError(
            "Invalid Config",
            f"{config_path.name} could not be read: {e}",
            suggestions=[f"Fix {config_path.name} or re-run 'schemactl init --reinit'"],
            cause=e,
        ) from e


def write_config(project_root: Path, config: ProjectConfig) -> Path:
    config_path = get_config_path(project_root)
    write_yaml(config_path, config.to_dict(), space_entries=True)
    logger.debug(f"Wrote {config_path}")
    return config_path


def create_initial_config(project_root: Path, local_key: str, schema_config: SchemaConfig) -> Path:
    """Write a config tracking a single schema."""
    return write_config(project_root, ProjectConfig(schemas={local_key: schema_config}))
