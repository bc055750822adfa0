"""
Manifest file access (.schemactl/<local-key>/manifest.yml).
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from schemactl.constants import CURRENT_SNAPSHOT_FILE
from schemactl.errors import CliError, ConfigError, SchemaValidationError
from schemactl.schemas import Manifest, ManifestEntry, SchemaSnapshot, latest_snapshot, to_iso_z

from .paths import get_manifest_path, get_schema_state_dir, get_snapshot_filename, get_state_dir
from .yaml_io import read_yaml, write_yaml

logger = logging.getLogger(__name__)

MANIFEST_HEADER = (
    "WARNING: This file is managed by schemactl.\n"
    "Manual modifications may lead to data corruption or sync issues.\n"
    "Use schemactl commands to manage snapshots safely."
)


def manifest_exists(project_root: Path, local_key: str) -> bool:
    return get_manifest_path(project_root, local_key).is_file()


def read_manifest(project_root: Path, local_key: str, engine: str) -> Manifest:
    """
    Load and validate a schema's manifest.

    Args:
        project_root: Project root directory
        local_key: Local key of the schema
        engine: Engine identifier the snapshot versions must belong to

    Raises:
        CliError: If the manifest is missing or invalid
    """
    manifest_path = get_manifest_path(project_root, local_key)
    if not manifest_path.is_file():
        raise CliError(
            "Manifest Not Found",
            f"Could not find manifest file at {manifest_path}",
            suggestions=["Run 'schemactl init' to initialize the project"],
        )

    try:
        manifest = Manifest.from_dict(read_yaml(manifest_path))
        manifest.validate_engine(engine)
    except (ConfigError, SchemaValidationError) as e:
        raise CliError(
            "Invalid Manifest",
            f"The manifest file at {manifest_path} has validation errors",
            hints=[str(e)],
            suggestions=["Check your manifest.yml syntax or re-initialize the schema"],
            cause=e,
        ) from e
    return manifest


def write_manifest(project_root: Path, local_key: str, manifest: Manifest) -> Path:
    """Write a manifest, creating the schema state directory if needed."""
    get_schema_state_dir(project_root, local_key).mkdir(parents=True, exist_ok=True)
    manifest_path = get_manifest_path(project_root, local_key)
    write_yaml(manifest_path, manifest.to_dict(), comment=MANIFEST_HEADER, space_entries=True)
    logger.debug(f"Wrote {manifest_path} ({len(manifest.snapshots)} snapshots)")
    return manifest_path


def build_manifest_from_snapshots(
    schema_id: str,
    snapshots: list[SchemaSnapshot],
    now: Optional[datetime] = None,
) -> Manifest:
    """
    Build a manifest describing freshly fetched remote snapshots.

    The newest snapshot (by created_at) is stored as "current"; the rest
    get dated file names. Every entry is marked synced at `now`.

    Raises:
        CliError: If a snapshot's content hash does not match its content
    """
    current = latest_snapshot(snapshots)
    synced_at = to_iso_z(now or datetime.now(timezone.utc))

    entries: dict[str, ManifestEntry] = {}
    for snapshot in snapshots:
        computed_hash = snapshot.compute_content_hash()
        if computed_hash != snapshot.content_hash:
            raise CliError(
                "Hash Verification Failed",
                f"Content hash mismatch for snapshot {snapshot.label!r} ({snapshot.id})",
                hints=[f"Expected: {snapshot.content_hash}", f"Computed: {computed_hash}"],
                suggestions=[
                    "This may indicate data corruption during transfer",
                    "Try running the command again",
                ],
            )

        if snapshot is current:
            file = CURRENT_SNAPSHOT_FILE
        else:
            file = get_snapshot_filename(snapshot.created_at, snapshot.label)

        entries[snapshot.id] = ManifestEntry(
            label=snapshot.label,
            parent_id=snapshot.parent_id,
            status=snapshot.status,
            database_version=snapshot.engine_version,
            created_at=to_iso_z(snapshot.created_at),
            file=file,
            content_hash=snapshot.content_hash,
            sync_state="synced",
            synced_at=synced_at,
        )

    return Manifest(schema_id=schema_id, snapshots=entries)


def find_schema_id_in_manifests(project_root: Path, schema_id: str) -> Optional[str]:
    """
    Find which local key (if any) already tracks a remote schema.

    Only the schema-id field is inspected; manifests that cannot be read
    are skipped.

    Returns:
        The local key whose manifest has this schema id, or None
    """
    state_dir = get_state_dir(project_root)
    if not state_dir.is_dir():
        return None

    for schema_state_dir in sorted(p for p in state_dir.iterdir() if p.is_dir()):
        manifest_path = get_manifest_path(project_root, schema_state_dir.name)
        if not manifest_path.is_file():
            continue
        try:
            data = read_yaml(manifest_path)
        except (ConfigError, OSError) as e:
            logger.debug(f"Skipping unreadable manifest {manifest_path}: {e}")
            continue
        if isinstance(data, dict) and data.get("schema-id") == schema_id:
            return schema_state_dir.name
    return None
