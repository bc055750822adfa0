"""
SchemaSnapshot - a point-in-time version of a remote schema.

Snapshots are discriminated by engine_key ("<engine>:<version>"); the
engine and engine_version fields must agree with it. Snapshot data is
either None (empty snapshot) or {"tables": [...]}, validated against the
PostgreSQL v15.0 table rules in schemactl.schemas.postgresql.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from schemactl.constants import SUPPORTED_ENGINE_KEYS
from schemactl.errors import SchemaValidationError
from schemactl.utils import compute_content_hash

from .postgresql import PostgresqlSchema
from .props import (
    optional_description,
    optional_uuid4,
    parse_datetime,
    require_choice,
    require_content_hash,
    require_label,
    require_uuid4,
)

SNAPSHOT_STATUSES = ("draft", "done")


def validate_tables(field: str, tables: Any) -> list[dict[str, Any]]:
    """
    Validate PostgreSQL v15.0 table definitions.

    The raw list is returned unchanged so it can be hashed and written
    back exactly as received.

    Raises:
        SchemaValidationError: On the first invalid table, column or constraint
    """
    PostgresqlSchema.from_tables(tables, field=field)
    return tables


@dataclass(frozen=True)
class SchemaSnapshot:
    """
    A remote schema snapshot.

    Attributes:
        id: Snapshot UUIDv4
        schema_id: Parent schema UUIDv4
        parent_id: Previous snapshot UUIDv4, None for the first one
        label: Snapshot label (1-64 chars, letters, digits, . _ + @ -)
        description: Optional description (max 256 chars)
        status: "draft" or "done"
        content_hash: "sha256:<hex>" over engine key, description and tables
        engine: Database engine identifier
        engine_version: Engine version (e.g. "v15.0")
        engine_key: Composite key "<engine>:<engine_version>"
        data: {"tables": [...]} or None
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """
    id: str
    schema_id: str
    parent_id: Optional[str]
    label: str
    description: Optional[str]
    status: str
    content_hash: str
    engine: str
    engine_version: str
    engine_key: str
    data: Optional[dict[str, Any]]
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        require_uuid4("id", self.id)
        require_uuid4("schemaId", self.schema_id)
        optional_uuid4("parentId", self.parent_id)
        object.__setattr__(self, "label", require_label("label", self.label))
        object.__setattr__(self, "description", optional_description("description", self.description))
        require_choice("status", self.status, SNAPSHOT_STATUSES)
        require_content_hash("contentHash", self.content_hash)
        require_choice("engineKey", self.engine_key, SUPPORTED_ENGINE_KEYS)
        if self.engine_key != f"{self.engine}:{self.engine_version}":
            raise SchemaValidationError(
                f"engineKey {self.engine_key!r} does not match engine {self.engine!r} "
                f"and engineVersion {self.engine_version!r}"
            )
        if self.data is not None:
            if not isinstance(self.data, dict) or set(self.data) != {"tables"}:
                raise SchemaValidationError("data: expected an object with only 'tables'")
            validate_tables("data.tables", self.data["tables"])

    @property
    def tables(self) -> list[dict[str, Any]]:
        """Table definitions, empty when the snapshot has no data."""
        if self.data is None:
            return []
        return self.data["tables"]

    def compute_content_hash(self) -> str:
        """Recompute the content hash from this snapshot's content."""
        return compute_content_hash(
            self.engine_key,
            self.description,
            self.data["tables"] if self.data is not None else None,
        )

    @classmethod
    def from_api(cls, data: Any) -> "SchemaSnapshot":
        """
        Build from an API payload (camelCase keys).

        Raises:
            SchemaValidationError: If a field is missing or invalid
        """
        if not isinstance(data, dict):
            raise SchemaValidationError("snapshot: expected an object")
        try:
            return cls(
                id=data["id"],
                schema_id=data["schemaId"],
                parent_id=data.get("parentId"),
                label=data["label"],
                description=data.get("description"),
                status=data["status"],
                content_hash=data["contentHash"],
                engine=data["engine"],
                engine_version=data["engineVersion"],
                engine_key=data["engineKey"],
                data=data.get("data"),
                created_at=parse_datetime("createdAt", data["createdAt"]),
                updated_at=parse_datetime("updatedAt", data["updatedAt"]),
            )
        except KeyError as e:
            raise SchemaValidationError(f"snapshot: missing field {e.args[0]}") from None


def latest_snapshot(snapshots: list[SchemaSnapshot]) -> Optional[SchemaSnapshot]:
    """Return the most recently created snapshot, or None for an empty list."""
    if not snapshots:
        return None
    return max(snapshots, key=lambda s: s.created_at)
