"""
Manifest schemas - the per-schema index of snapshots kept under .schemactl/.

On disk (YAML, kebab-case keys):

    schema-id: <uuid>
    snapshots:
      <snapshot-id>:
        label: v1.0.0
        parent-id: null
        status: done
        database-version: v15.0
        created-at: '2024-01-15T10:30:00.000Z'
        file: 2024-01-15_v1.0.0.yml     # or "current" for the newest
        content-hash: sha256:...
        sync-state: synced
        synced-at: '2024-02-01T08:00:00.000Z'
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from schemactl.constants import SUPPORTED_ENGINE_VERSIONS
from schemactl.errors import SchemaValidationError

from .props import (
    UUID4_PATTERN,
    parse_datetime,
    require_choice,
    require_content_hash,
    require_label,
    require_uuid4,
    to_iso_z,
)
from .snapshot import SNAPSHOT_STATUSES

SYNC_STATES = ("synced", "local-only", "orphaned")
LOCAL_ID_PATTERN = re.compile(
    r"^local-[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$"
)
FILE_PATTERN = re.compile(r"^(current|[0-9]{4}-[0-9]{2}-[0-9]{2}_[a-zA-Z0-9._+@-]+\.yml)$")


def _as_iso(value: Any) -> Any:
    # Unquoted timestamps in hand-edited YAML load as datetime objects
    if isinstance(value, datetime):
        return to_iso_z(parse_datetime("timestamp", value))
    return value


def _require_snapshot_id(field_name: str, value: Any) -> str:
    if isinstance(value, str) and (UUID4_PATTERN.match(value) or LOCAL_ID_PATTERN.match(value)):
        return value
    raise SchemaValidationError(f"{field_name}: expected a snapshot UUIDv4 or local id, got {value!r}")


@dataclass(frozen=True)
class ManifestEntry:
    """
    One snapshot tracked by a manifest.

    Attributes:
        label: Snapshot label
        parent_id: Parent snapshot id (remote UUIDv4 or local-<uuid>), None for roots
        status: "draft" or "done"
        database_version: Engine version (e.g. "v15.0")
        created_at: ISO-8601 creation time
        file: "current" or the stored snapshot filename
        content_hash: "sha256:<hex>"
        sync_state: "synced", "local-only" or "orphaned"
        synced_at: ISO-8601 time of last sync, None if never synced
    """
    label: str
    parent_id: Optional[str]
    status: str
    database_version: str
    created_at: str
    file: str
    content_hash: str
    sync_state: str = "synced"
    synced_at: Optional[str] = None

    def __post_init__(self):
        require_label("label", self.label)
        if self.parent_id is not None:
            _require_snapshot_id("parent-id", self.parent_id)
        require_choice("status", self.status, SNAPSHOT_STATUSES)
        parse_datetime("created-at", self.created_at)
        if not isinstance(self.file, str) or not FILE_PATTERN.match(self.file):
            raise SchemaValidationError(f"file: invalid snapshot file name {self.file!r}")
        require_content_hash("content-hash", self.content_hash)
        require_choice("sync-state", self.sync_state, SYNC_STATES)
        if self.synced_at is not None:
            parse_datetime("synced-at", self.synced_at)

    def validate_engine(self, engine: str) -> None:
        """Check database_version is a supported version of engine."""
        require_choice("database-version", self.database_version, SUPPORTED_ENGINE_VERSIONS.get(engine, ()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "parent-id": self.parent_id,
            "status": self.status,
            "database-version": self.database_version,
            "created-at": self.created_at,
            "file": self.file,
            "content-hash": self.content_hash,
            "sync-state": self.sync_state,
            "synced-at": self.synced_at,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ManifestEntry":
        if not isinstance(data, dict):
            raise SchemaValidationError("manifest entry: expected a mapping")
        try:
            return cls(
                label=data["label"],
                parent_id=data.get("parent-id"),
                status=data["status"],
                database_version=data["database-version"],
                created_at=_as_iso(data["created-at"]),
                file=data["file"],
                content_hash=data["content-hash"],
                sync_state=data.get("sync-state", "synced"),
                synced_at=_as_iso(data.get("synced-at")),
            )
        except KeyError as e:
            raise SchemaValidationError(f"manifest entry: missing field {e.args[0]}") from None


@dataclass(frozen=True)
class Manifest:
    """
    Snapshot index for one schema.

    Attributes:
        schema_id: Remote schema UUIDv4
        snapshots: Entries keyed by snapshot id, in insertion order
    """
    schema_id: str
    snapshots: dict[str, ManifestEntry] = field(default_factory=dict)

    def __post_init__(self):
        require_uuid4("schema-id", self.schema_id)
        for snapshot_id in self.snapshots:
            _require_snapshot_id("snapshots", snapshot_id)

    def validate_engine(self, engine: str) -> None:
        for entry in self.snapshots.values():
            entry.validate_engine(engine)

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema-id": self.schema_id,
            "snapshots": {sid: entry.to_dict() for sid, entry in self.snapshots.items()},
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Manifest":
        if not isinstance(data, dict):
            raise SchemaValidationError("manifest: expected a mapping")
        if "schema-id" not in data:
            raise SchemaValidationError("manifest: missing field schema-id")
        raw_snapshots = data.get("snapshots") or {}
        if not isinstance(raw_snapshots, dict):
            raise SchemaValidationError("manifest: snapshots must be a mapping")
        return cls(
            schema_id=data["schema-id"],
            snapshots={
                sid: ManifestEntry.from_dict(entry) for sid, entry in raw_snapshots.items()
            },
        )
