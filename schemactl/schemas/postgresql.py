"""
PostgreSQL v15.0 snapshot content: tables, columns and constraints.

Snapshot data for the "postgresql:v15.0" engine key is validated into
these dataclasses. Validation is strict: unknown keys are rejected, and
the first problem found is raised as SchemaValidationError with a
path-like prefix (e.g. "tables[0]: columns[1]: name: ...").

Rules enforced beyond field shapes:
- Column and constraint ids / names are unique within a table
- Table ids / names are unique within a schema
- A table has at most one primary key, and its columns are nullable=false
- Constraint columns exist in the table
- Foreign keys reference an existing table and columns, with matching
  column counts, and the referenced columns form a primary key or
  unique constraint
- on_delete / on_update "set_null" requires nullable columns
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TypeVar

from schemactl.errors import SchemaValidationError

from .props import optional_description, require_choice

IDENTIFIER_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")
IDENTIFIER_MAX_LENGTH = 63

COLUMN_TYPES = ("text", "integer", "serial", "boolean", "date", "timestamp")
CONSTRAINT_TYPES = ("foreign_key", "unique", "primary_key")
REFERENTIAL_ACTIONS = ("cascade", "set_null", "set_default", "restrict", "no_action")

TEXT_CONSTRAINT_KEYS = ("min_length", "max_length")
INTEGER_CONSTRAINT_KEYS = ("min_value", "max_value")

# Marks a column without a "default" key; None is a valid default (SQL NULL)
NO_DEFAULT = object()

T = TypeVar("T")


def require_identifier(field: str, value: Any) -> str:
    """PostgreSQL identifier: 1-63 chars, lowercase letter then [a-z0-9_]."""
    if not isinstance(value, str):
        raise SchemaValidationError(f"{field}: expected a string, got {type(value).__name__}")
    if not 1 <= len(value) <= IDENTIFIER_MAX_LENGTH:
        raise SchemaValidationError(f"{field}: must be 1-{IDENTIFIER_MAX_LENGTH} characters")
    if not IDENTIFIER_PATTERN.match(value):
        raise SchemaValidationError(
            f"{field}: {value!r} must start with a lowercase letter and contain only a-z, 0-9 and _"
        )
    return value


def require_int(field: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise SchemaValidationError(f"{field}: expected an integer, got {value!r}")
    return value


def require_positive_int(field: str, value: Any) -> int:
    if require_int(field, value) <= 0:
        raise SchemaValidationError(f"{field}: must be a positive integer")
    return value


def _require_mapping(field: str, data: Any, allowed: tuple[str, ...]) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise SchemaValidationError(f"{field}: expected an object")
    unknown = [key for key in data if key not in allowed]
    if unknown:
        raise SchemaValidationError(f"{field}: unknown field(s) {unknown}")
    return data


def _parse_list(field: str, items: Any, parse: Callable[[Any], T]) -> tuple[T, ...]:
    """Parse each list item, prefixing errors with the item's position."""
    if not isinstance(items, list):
        raise SchemaValidationError(f"{field}: expected a list")
    parsed = []
    for index, item in enumerate(items):
        try:
            parsed.append(parse(item))
        except SchemaValidationError as e:
            raise SchemaValidationError(f"{field}[{index}]: {e}") from None
    return tuple(parsed)


def _duplicates(values: list[Any]) -> bool:
    return len(values) != len(set(values))


@dataclass(frozen=True)
class ValueConstraint:
    """A named bound on a column (min/max length or value)."""
    name: str
    value: int

    def __post_init__(self):
        require_identifier("name", self.name)
        require_int("value", self.value)

    @classmethod
    def from_dict(cls, data: Any) -> "ValueConstraint":
        data = _require_mapping("constraint", data, ("name", "value"))
        try:
            return cls(name=data["name"], value=data["value"])
        except KeyError as e:
            raise SchemaValidationError(f"missing field {e.args[0]}") from None


@dataclass(frozen=True)
class ColumnConstraints:
    """
    Column-level constraints.

    Text bounds (min_length / max_length) and integer bounds
    (min_value / max_value) cannot be combined in one column.
    """
    nullable: bool = True
    min_length: Optional[ValueConstraint] = None
    max_length: Optional[ValueConstraint] = None
    min_value: Optional[ValueConstraint] = None
    max_value: Optional[ValueConstraint] = None

    def __post_init__(self):
        if not isinstance(self.nullable, bool):
            raise SchemaValidationError("nullable: expected a boolean")
        if self.text_bounds() and self.integer_bounds():
            raise SchemaValidationError("text and integer constraints cannot be combined")

    def text_bounds(self) -> list[str]:
        return [key for key in TEXT_CONSTRAINT_KEYS if getattr(self, key) is not None]

    def integer_bounds(self) -> list[str]:
        return [key for key in INTEGER_CONSTRAINT_KEYS if getattr(self, key) is not None]

    @classmethod
    def from_dict(cls, data: Any) -> "ColumnConstraints":
        data = _require_mapping("constraints", data, ("nullable",) + TEXT_CONSTRAINT_KEYS + INTEGER_CONSTRAINT_KEYS)
        bounds = {}
        for key in TEXT_CONSTRAINT_KEYS + INTEGER_CONSTRAINT_KEYS:
            if key in data:
                try:
                    bounds[key] = ValueConstraint.from_dict(data[key])
                except SchemaValidationError as e:
                    raise SchemaValidationError(f"{key}: {e}") from None
        return cls(nullable=data.get("nullable", True), **bounds)


@dataclass(frozen=True)
class Column:
    """
    A table column.

    Attributes:
        id: Positive integer, unique within the table
        name: PostgreSQL identifier, unique within the table
        type: One of COLUMN_TYPES
        description: Optional description (max 256 chars)
        default: Default value, NO_DEFAULT when absent
        constraints: Optional column constraints
    """
    id: int
    name: str
    type: str
    description: Optional[str] = None
    default: Any = NO_DEFAULT
    constraints: Optional[ColumnConstraints] = None

    def __post_init__(self):
        require_positive_int("id", self.id)
        require_identifier("name", self.name)
        require_choice("type", self.type, COLUMN_TYPES)
        optional_description("description", self.description)
        if self.has_default:
            self._validate_default()
        if self.constraints is not None:
            self._validate_constraints()

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    @property
    def nullable(self) -> bool:
        return self.constraints.nullable if self.constraints is not None else True

    def _validate_default(self):
        value = self.default
        if value is not None and not isinstance(value, (str, int)):
            raise SchemaValidationError("default: expected a string, integer, boolean or null")

        if self.type == "text":
            valid = value is None or isinstance(value, str)
            expected = "string or null"
        elif self.type == "integer":
            valid = value is None or (isinstance(value, int) and not isinstance(value, bool))
            expected = "integer or null"
        elif self.type == "boolean":
            valid = value is None or isinstance(value, bool)
            expected = "boolean or null"
        elif self.type == "date":
            valid = value is None or value == "current_date"
            expected = '"current_date" or null'
        elif self.type == "timestamp":
            valid = value is None or value == "current_timestamp"
            expected = '"current_timestamp" or null'
        else:
            # serial: only an explicit false (no default) is accepted
            if value is not False:
                raise SchemaValidationError("default: serial columns cannot have default values")
            valid, expected = True, ""

        if not valid:
            raise SchemaValidationError(f"default: {self.type} column default must be {expected}")

        if value is None and not self.nullable:
            raise SchemaValidationError("default: cannot have default=null with nullable=false")

    def _validate_constraints(self):
        for key in self.constraints.text_bounds():
            if self.type != "text":
                raise SchemaValidationError(f"constraints: {key} constraint is only valid for text columns")
        for key in self.constraints.integer_bounds():
            if self.type != "integer":
                raise SchemaValidationError(f"constraints: {key} constraint is only valid for integer columns")

    @classmethod
    def from_dict(cls, data: Any) -> "Column":
        data = _require_mapping(
            "column", data, ("id", "name", "type", "description", "default", "constraints")
        )
        constraints = None
        if "constraints" in data:
            try:
                constraints = ColumnConstraints.from_dict(data["constraints"])
            except SchemaValidationError as e:
                raise SchemaValidationError(f"constraints: {e}") from None
        try:
            return cls(
                id=data["id"],
                name=data["name"],
                type=data["type"],
                description=data.get("description"),
                default=data.get("default", NO_DEFAULT),
                constraints=constraints,
            )
        except KeyError as e:
            raise SchemaValidationError(f"missing field {e.args[0]}") from None


@dataclass(frozen=True)
class ForeignKeyReference:
    """Target of a foreign key: a table and its columns."""
    table: str
    columns: tuple[str, ...]

    def __post_init__(self):
        require_identifier("table", self.table)
        for column in self.columns:
            require_identifier("columns", column)

    @classmethod
    def from_dict(cls, data: Any) -> "ForeignKeyReference":
        data = _require_mapping("references", data, ("table", "columns"))
        try:
            columns = data["columns"]
            if not isinstance(columns, list):
                raise SchemaValidationError("columns: expected a list")
            return cls(table=data["table"], columns=tuple(columns))
        except KeyError as e:
            raise SchemaValidationError(f"missing field {e.args[0]}") from None


@dataclass(frozen=True)
class TableConstraint:
    """
    A table-level constraint (primary key, unique or foreign key).

    Foreign keys require references, on_delete and on_update; other
    constraint types must not carry them.
    """
    id: int
    name: str
    type: str
    columns: tuple[str, ...]
    description: Optional[str] = None
    references: Optional[ForeignKeyReference] = None
    on_delete: Optional[str] = None
    on_update: Optional[str] = None

    def __post_init__(self):
        require_positive_int("id", self.id)
        require_identifier("name", self.name)
        require_choice("type", self.type, CONSTRAINT_TYPES)
        optional_description("description", self.description)
        for column in self.columns:
            require_identifier("columns", column)
        for action_field in ("on_delete", "on_update"):
            action = getattr(self, action_field)
            if action is not None:
                require_choice(action_field, action, REFERENTIAL_ACTIONS)

        if self.type == "foreign_key":
            if self.references is None:
                raise SchemaValidationError("references: foreign key constraints must have references field")
            if self.on_delete is None:
                raise SchemaValidationError("on_delete: foreign key constraints must have on_delete action")
            if self.on_update is None:
                raise SchemaValidationError("on_update: foreign key constraints must have on_update action")
        else:
            for fk_field in ("references", "on_delete", "on_update"):
                if getattr(self, fk_field) is not None:
                    raise SchemaValidationError(
                        f"{fk_field}: only foreign key constraints can have {fk_field}"
                    )

    @classmethod
    def from_dict(cls, data: Any) -> "TableConstraint":
        data = _require_mapping(
            "constraint",
            data,
            ("id", "name", "type", "description", "columns", "references", "on_delete", "on_update"),
        )
        references = None
        if "references" in data:
            try:
                references = ForeignKeyReference.from_dict(data["references"])
            except SchemaValidationError as e:
                raise SchemaValidationError(f"references: {e}") from None
        try:
            columns = data["columns"]
            if not isinstance(columns, list):
                raise SchemaValidationError("columns: expected a list")
            return cls(
                id=data["id"],
                name=data["name"],
                type=data["type"],
                columns=tuple(columns),
                description=data.get("description"),
                references=references,
                on_delete=data.get("on_delete"),
                on_update=data.get("on_update"),
            )
        except KeyError as e:
            raise SchemaValidationError(f"missing field {e.args[0]}") from None


@dataclass(frozen=True)
class Table:
    """
    A table definition.

    Attributes:
        id: Positive integer, unique within the schema
        name: PostgreSQL identifier, unique within the schema
        columns: At least one column
        constraints: Table-level constraints
        description: Optional description (max 256 chars)
    """
    id: int
    name: str
    columns: tuple[Column, ...]
    constraints: tuple[TableConstraint, ...] = field(default_factory=tuple)
    description: Optional[str] = None

    def __post_init__(self):
        require_positive_int("id", self.id)
        require_identifier("name", self.name)
        optional_description("description", self.description)
        if not self.columns:
            raise SchemaValidationError("columns: a table needs at least one column")
        if _duplicates([c.id for c in self.columns]):
            raise SchemaValidationError("columns: Column IDs must be unique within a table")
        if _duplicates([c.name for c in self.columns]):
            raise SchemaValidationError("columns: Column names must be unique within a table")
        if _duplicates([c.id for c in self.constraints]):
            raise SchemaValidationError("constraints: Constraint IDs must be unique within a table")
        if _duplicates([c.name for c in self.constraints]):
            raise SchemaValidationError("constraints: Constraint names must be unique within a table")
        if len([c for c in self.constraints if c.type == "primary_key"]) > 1:
            raise SchemaValidationError("constraints: Table can have at most one primary key constraint")

        for constraint in self.constraints:
            self._validate_constraint(constraint)

    def get_column(self, name: str) -> Optional[Column]:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def _validate_constraint(self, constraint: TableConstraint):
        for column_name in constraint.columns:
            column = self.get_column(column_name)
            if column is None:
                raise SchemaValidationError(
                    f'constraints: Constraint "{constraint.name}" references non-existent column "{column_name}"'
                )
            if constraint.type == "primary_key" and column.nullable:
                raise SchemaValidationError(
                    f'constraints: Primary key column "{column_name}" must have nullable=false'
                )

        if constraint.type != "foreign_key":
            return

        referenced = constraint.references.columns
        if len(constraint.columns) != len(referenced):
            raise SchemaValidationError(
                f'constraints: Foreign key "{constraint.name}" has {len(constraint.columns)} column(s) '
                f"but references {len(referenced)} column(s)"
            )
        for action_field in ("on_delete", "on_update"):
            if getattr(constraint, action_field) != "set_null":
                continue
            for column_name in constraint.columns:
                if not self.get_column(column_name).nullable:
                    raise SchemaValidationError(
                        f'constraints: Foreign key "{constraint.name}" has {action_field}="set_null" '
                        f'but column "{column_name}" is not nullable'
                    )

    def has_key(self, columns: tuple[str, ...]) -> bool:
        """True if a primary key or unique constraint covers exactly these columns."""
        return any(
            c.type in ("primary_key", "unique")
            and len(c.columns) == len(columns)
            and set(c.columns) == set(columns)
            for c in self.constraints
        )

    @classmethod
    def from_dict(cls, data: Any) -> "Table":
        data = _require_mapping("table", data, ("id", "name", "description", "columns", "constraints"))
        try:
            columns = _parse_list("columns", data["columns"], Column.from_dict)
            constraints = _parse_list("constraints", data.get("constraints", []), TableConstraint.from_dict)
            return cls(
                id=data["id"],
                name=data["name"],
                columns=columns,
                constraints=constraints,
                description=data.get("description"),
            )
        except KeyError as e:
            raise SchemaValidationError(f"missing field {e.args[0]}") from None


@dataclass(frozen=True)
class PostgresqlSchema:
    """The tables of a PostgreSQL v15.0 snapshot, validated across tables."""
    tables: tuple[Table, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if _duplicates([t.id for t in self.tables]):
            raise SchemaValidationError("Table IDs must be unique within a schema")
        if _duplicates([t.name for t in self.tables]):
            raise SchemaValidationError("Table names must be unique within a schema")
        for table in self.tables:
            for constraint in table.constraints:
                if constraint.type == "foreign_key":
                    self._validate_foreign_key(table, constraint)

    def get_table(self, name: str) -> Optional[Table]:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def _validate_foreign_key(self, table: Table, constraint: TableConstraint):
        prefix = f'{table.name}: Foreign key "{constraint.name}"'
        reference = constraint.references
        target = self.get_table(reference.table)
        if target is None:
            raise SchemaValidationError(f'{prefix} references non-existent table "{reference.table}"')

        for column_name in reference.columns:
            if target.get_column(column_name) is None:
                raise SchemaValidationError(
                    f'{prefix} references non-existent column "{column_name}" in table "{reference.table}"'
                )

        if not target.constraints:
            raise SchemaValidationError(
                f"{prefix} references columns ({', '.join(reference.columns)}) in table "
                f'"{reference.table}" which has no constraints defined'
            )
        if not target.has_key(reference.columns):
            raise SchemaValidationError(
                f"{prefix} references columns ({', '.join(reference.columns)}) in table "
                f'"{reference.table}" which are not a primary key or unique constraint'
            )

    @classmethod
    def from_tables(cls, tables: Any, field: str = "tables") -> "PostgresqlSchema":
        parsed = _parse_list(field, tables, Table.from_dict)
        try:
            return cls(tables=parsed)
        except SchemaValidationError as e:
            raise SchemaValidationError(f"{field}: {e}") from None
