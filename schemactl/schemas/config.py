"""
Project configuration schemas (schemactl.yml).

    schemas:
      <local-key>:
        dir: db-schemas
        key: sk_...            # or an env reference like ${SCHEMA_KEY}
        engine: PostgreSQL
        env-file: .env         # optional
        envs:
          staging:
            host: localhost
            port: 5432
            db-name: shop
            user: app
            password: ${DB_PASSWORD}
"""

import re
from dataclasses import dataclass, field
from typing import Any, Optional

from schemactl.constants import DEFAULT_SCHEMA_DIR, ENGINE_DISPLAY_NAMES
from schemactl.errors import SchemaValidationError

from .api_key import is_valid_api_key
from .props import require_choice, require_local_key, require_string

ENV_REFERENCE_PATTERN = re.compile(r"^\$\{[A-Za-z_][A-Za-z0-9_]*\}$")
ENV_NAME_PATTERN = re.compile(r"^[a-z0-9_-]+$")
SSL_MODES = ("disable", "allow", "prefer", "require", "verify-ca", "verify-full")


@dataclass(frozen=True)
class PostgresqlEnv:
    """
    Connection settings of one database environment.

    Attributes:
        host: Database host
        port: Database port (1-65535)
        db_name: Database name
        user: Database user
        password: Database password (may be an ${ENV_VAR} reference)
        target_schema: Schema to apply changes to
        ssl_mode: libpq sslmode
        connect_timeout: Connection timeout in seconds
        env_file: Optional env file overriding the schema-level one
    """
    host: str
    port: int
    db_name: str
    user: str
    password: str
    target_schema: str = "public"
    ssl_mode: str = "prefer"
    connect_timeout: int = 10
    env_file: Optional[str] = None

    def __post_init__(self):
        require_string("host", self.host, min_length=1)
        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 1 <= self.port <= 65535:
            raise SchemaValidationError(f"port: expected an integer between 1 and 65535, got {self.port!r}")
        require_string("db-name", self.db_name, min_length=1)
        require_string("user", self.user, min_length=1)
        require_string("password", self.password)
        require_string("target-schema", self.target_schema)
        require_choice("ssl-mode", self.ssl_mode, SSL_MODES)
        if (
            isinstance(self.connect_timeout, bool)
            or not isinstance(self.connect_timeout, int)
            or self.connect_timeout <= 0
        ):
            raise SchemaValidationError("connect-timeout: expected a positive integer")
        if self.env_file is not None:
            require_string("env-file", self.env_file)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.env_file is not None:
            result["env-file"] = self.env_file
        result.update({
            "host": self.host,
            "port": self.port,
            "db-name": self.db_name,
            "target-schema": self.target_schema,
            "user": self.user,
            "password": self.password,
            "ssl-mode": self.ssl_mode,
            "connect-timeout": self.connect_timeout,
        })
        return result

    @classmethod
    def from_dict(cls, data: Any) -> "PostgresqlEnv":
        """Build from a config mapping; unknown keys are ignored."""
        if not isinstance(data, dict):
            raise SchemaValidationError("env: expected a mapping")
        try:
            return cls(
                host=data["host"],
                port=data["port"],
                db_name=data["db-name"],
                user=data["user"],
                password=data["password"],
                target_schema=data.get("target-schema", "public"),
                ssl_mode=data.get("ssl-mode", "prefer"),
                connect_timeout=data.get("connect-timeout", 10),
                env_file=data.get("env-file"),
            )
        except KeyError as e:
            raise SchemaValidationError(f"env: missing field {e.args[0]}") from None


@dataclass(frozen=True)
class SchemaConfig:
    """
    Configuration of one tracked schema.

    Attributes:
        dir: Directory holding the working snapshot file
        key: Schema API key, or a ${VAR} reference resolved at use time
        engine: Engine display name (e.g. "PostgreSQL")
        env_file: Optional env file for connection settings
        envs: Named database environments, keyed by env name
    """
    key: str
    engine: str
    dir: str = DEFAULT_SCHEMA_DIR
    env_file: Optional[str] = None
    envs: dict[str, PostgresqlEnv] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.key, str) or not (
            is_valid_api_key(self.key) or ENV_REFERENCE_PATTERN.match(self.key)
        ):
            raise SchemaValidationError("key: expected a schema API key or an ${ENV_VAR} reference")
        if self.engine not in ENGINE_DISPLAY_NAMES.values():
            raise SchemaValidationError(f"engine: unsupported engine {self.engine!r}")
        require_string("dir", self.dir, min_length=1)
        if not isinstance(self.envs, dict):
            raise SchemaValidationError("envs: expected a mapping")
        for env_name, env in self.envs.items():
            require_string("envs", env_name, 1, 32, ENV_NAME_PATTERN)
            if not isinstance(env, PostgresqlEnv):
                raise SchemaValidationError(f"envs.{env_name}: expected PostgresqlEnv")

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"dir": self.dir, "key": self.key, "engine": self.engine}
        if self.env_file is not None:
            result["env-file"] = self.env_file
        result["envs"] = {name: env.to_dict() for name, env in self.envs.items()}
        return result

    @classmethod
    def from_dict(cls, data: Any) -> "SchemaConfig":
        if not isinstance(data, dict):
            raise SchemaValidationError("schema config: expected a mapping")
        envs_data = data.get("envs") or {}
        if not isinstance(envs_data, dict):
            raise SchemaValidationError("envs: expected a mapping")
        envs = {}
        for env_name, env_data in envs_data.items():
            try:
                envs[env_name] = PostgresqlEnv.from_dict(env_data)
            except SchemaValidationError as e:
                raise SchemaValidationError(f"envs.{env_name}: {e}") from None
        try:
            return cls(
                key=data["key"],
                engine=data["engine"],
                dir=data.get("dir", DEFAULT_SCHEMA_DIR),
                env_file=data.get("env-file"),
                envs=envs,
            )
        except KeyError as e:
            raise SchemaValidationError(f"schema config: missing field {e.args[0]}") from None


@dataclass(frozen=True)
class ProjectConfig:
    """All schemas tracked by a project, keyed by local key."""
    schemas: dict[str, SchemaConfig] = field(default_factory=dict)

    def __post_init__(self):
        for local_key in self.schemas:
            require_local_key(local_key)

    def to_dict(self) -> dict[str, Any]:
        return {"schemas": {name: cfg.to_dict() for name, cfg in self.schemas.items()}}

    @classmethod
    def from_dict(cls, data: Any) -> "ProjectConfig":
        if not isinstance(data, dict) or not isinstance(data.get("schemas"), dict):
            raise SchemaValidationError("config: expected a 'schemas' mapping")
        return cls(
            schemas={name: SchemaConfig.from_dict(cfg) for name, cfg in data["schemas"].items()}
        )
