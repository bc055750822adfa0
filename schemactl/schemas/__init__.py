"""
schemactl.schemas - validated data structures.

Remote data (from the API):
- RemoteSchema: the schema being initialized
- SchemaSnapshot: point-in-time versions of that schema
- PostgresqlSchema / Table / Column / TableConstraint: snapshot content

Local state (YAML files):
- ProjectConfig / SchemaConfig / PostgresqlEnv: schemactl.yml
- Manifest / ManifestEntry: .schemactl/<local-key>/manifest.yml

All dataclasses validate in __post_init__ and raise SchemaValidationError.
"""

from .api_key import validate_api_key, is_valid_api_key
from .schema import RemoteSchema
from .snapshot import SchemaSnapshot, latest_snapshot, validate_tables
from .manifest import Manifest, ManifestEntry
from .config import PostgresqlEnv, ProjectConfig, SchemaConfig
from .postgresql import (
    Column,
    ColumnConstraints,
    ForeignKeyReference,
    PostgresqlSchema,
    Table,
    TableConstraint,
    ValueConstraint,
)
from .props import require_local_key, to_iso_z

__all__ = [
    # API keys
    "validate_api_key",
    "is_valid_api_key",
    # Remote
    "RemoteSchema",
    "SchemaSnapshot",
    "latest_snapshot",
    "validate_tables",
    # PostgreSQL v15.0 content
    "Column",
    "ColumnConstraints",
    "ForeignKeyReference",
    "PostgresqlSchema",
    "Table",
    "TableConstraint",
    "ValueConstraint",
    # Local state
    "Manifest",
    "ManifestEntry",
    "PostgresqlEnv",
    "ProjectConfig",
    "SchemaConfig",
    # Helpers
    "require_local_key",
    "to_iso_z",
]
