"""
Snapshot file access.

Stored snapshots (.schemactl/<local-key>/snapshots/<file>) hold the
content of past snapshots:

    description: ...        # optional
    tables: [...]

The working snapshot (<dir>/<local-key>.yml) is the file users edit:

    schema:
      name: ...
      description: ...      # optional
    snapshot:
      label: ...
      engine-version: v15.0
      description: ...      # optional
      tables: [...]
"""

import logging
from pathlib import Path
from typing import Any, Optional

from schemactl.errors import CliError, ConfigError, SchemaValidationError
from schemactl.schemas import RemoteSchema, SchemaSnapshot, validate_tables

from .paths import get_snapshots_dir, get_stored_snapshot_path, get_working_snapshot_path
from .yaml_io import dump_yaml, read_yaml, write_yaml

logger = logging.getLogger(__name__)

WORKING_SNAPSHOT_NOTE = (
    "NOTE: Schema name and description are detached from remote.\n"
    "Changes made here will NOT be reflected on the remote server.\n"
    "Only the local display values are affected."
)


def stored_snapshot_data(snapshot: SchemaSnapshot) -> dict[str, Any]:
    data: dict[str, Any] = {}
    if snapshot.description is not None:
        data["description"] = snapshot.description
    data["tables"] = snapshot.tables
    return data


def working_snapshot_data(schema: RemoteSchema, snapshot: SchemaSnapshot) -> dict[str, Any]:
    schema_data: dict[str, Any] = {"name": schema.name}
    if schema.description is not None:
        schema_data["description"] = schema.description

    snapshot_data: dict[str, Any] = {
        "label": snapshot.label,
        "engine-version": snapshot.engine_version,
    }
    if snapshot.description is not None:
        snapshot_data["description"] = snapshot.description
    snapshot_data["tables"] = snapshot.tables

    return {"schema": schema_data, "snapshot": snapshot_data}


def write_stored_snapshot(project_root: Path, local_key: str, filename: str, data: dict[str, Any]) -> Path:
    get_snapshots_dir(project_root, local_key).mkdir(parents=True, exist_ok=True)
    path = get_stored_snapshot_path(project_root, local_key, filename)
    write_yaml(path, data)
    logger.debug(f"Wrote stored snapshot {path}")
    return path


def write_working_snapshot(project_root: Path, schema_dir: str, local_key: str, data: dict[str, Any]) -> Path:
    """
    Write the working snapshot with the detached-metadata note above
    the schema block and a blank line before the snapshot block.
    """
    path = get_working_snapshot_path(project_root, schema_dir, local_key)
    path.parent.mkdir(parents=True, exist_ok=True)

    schema_part = dump_yaml({"schema": data["schema"]}, comment=WORKING_SNAPSHOT_NOTE)
    snapshot_part = dump_yaml({"snapshot": data["snapshot"]})
    path.write_text(f"{schema_part}\n{snapshot_part}", encoding="utf-8")
    logger.debug(f"Wrote working snapshot {path}")
    return path


def read_working_snapshot(project_root: Path, schema_dir: str, local_key: str) -> dict[str, Any]:
    """
    Load a working snapshot and check its shape.

    Raises:
        CliError: If the file is missing or malformed
    """
    path = get_working_snapshot_path(project_root, schema_dir, local_key)
    if not path.is_file():
        raise CliError(
            "Working Snapshot Not Found",
            f"Could not find working snapshot at {path}",
            suggestions=["Check that the schema has been initialized"],
        )

    try:
        data = read_yaml(path)
        _check_working_snapshot(data)
    except (ConfigError, SchemaValidationError) as e:
        raise CliError(
            "Invalid Working Snapshot",
            f"The working snapshot at {path} has validation errors",
            hints=[str(e)],
            suggestions=["Check the working snapshot file syntax and structure"],
            cause=e,
        ) from e
    return data


def _check_working_snapshot(data: Optional[Any]) -> None:
    if not isinstance(data, dict):
        raise SchemaValidationError("working snapshot: expected a mapping")
    schema = data.get("schema")
    snapshot = data.get("snapshot")
    if not isinstance(schema, dict) or not isinstance(schema.get("name"), str):
        raise SchemaValidationError("schema.name: expected a string")
    if not isinstance(snapshot, dict):
        raise SchemaValidationError("snapshot: expected a mapping")
    for field in ("label", "engine-version"):
        if not isinstance(snapshot.get(field), str):
            raise SchemaValidationError(f"snapshot.{field}: expected a string")
    validate_tables("snapshot.tables", snapshot.get("tables"))
