"""
RemoteSchema - a schema as returned by the remote API.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from schemactl.constants import SUPPORTED_DATABASE_ENGINES
from schemactl.errors import SchemaValidationError

from .props import (
    SCHEMA_NAME_PATTERN,
    optional_description,
    parse_datetime,
    require_choice,
    require_string,
    require_uuid4,
)


@dataclass(frozen=True)
class RemoteSchema:
    """
    A remote schema definition.

    Attributes:
        id: Schema UUIDv4
        project_id: Owning project UUIDv4
        name: Display name (1-64 chars, letters, digits, space, . _ -)
        engine: Database engine identifier (e.g. "postgresql")
        description: Optional description (max 256 chars)
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """
    id: str
    project_id: str
    name: str
    engine: str
    description: Optional[str]
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        require_uuid4("id", self.id)
        require_uuid4("projectId", self.project_id)
        object.__setattr__(
            self, "name", require_string("name", self.name, 1, 64, SCHEMA_NAME_PATTERN)
        )
        require_choice("engine", self.engine, SUPPORTED_DATABASE_ENGINES)
        object.__setattr__(self, "description", optional_description("description", self.description))

    @classmethod
    def from_api(cls, data: Any) -> "RemoteSchema":
        """
        Build from an API payload (camelCase keys).

        Raises:
            SchemaValidationError: If a field is missing or invalid
        """
        if not isinstance(data, dict):
            raise SchemaValidationError("schema: expected an object")
        try:
            return cls(
                id=data["id"],
                project_id=data["projectId"],
                name=data["name"],
                engine=data["engine"],
                description=data.get("description"),
                created_at=parse_datetime("createdAt", data["createdAt"]),
                updated_at=parse_datetime("updatedAt", data["updatedAt"]),
            )
        except KeyError as e:
            raise SchemaValidationError(f"schema: missing field {e.args[0]}") from None
