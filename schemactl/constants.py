"""
Constants shared across schemactl: file layout, API key format and the
supported database engine registry.
"""

# File layout
STATE_DIR = ".schemactl"
CONFIG_FILE = "schemactl.yml"
MANIFEST_FILE = "manifest.yml"
SNAPSHOTS_DIR = "snapshots"
DEFAULT_SCHEMA_DIR = "db-schemas"
CURRENT_SNAPSHOT_FILE = "current"

# API keys: sk_<uuid4>_<64 lowercase hex>
API_KEY_PREFIX = "sk"
API_KEY_SEPARATOR = "_"
API_KEY_SECRET_LENGTH = 64

# Engines
ENGINE_POSTGRESQL = "postgresql"
ENGINE_POSTGRESQL_DISPLAY = "PostgreSQL"
PSQL_VERSION_15_0 = "v15.0"
ENGINE_KEY_POSTGRESQL_15_0 = f"{ENGINE_POSTGRESQL}:{PSQL_VERSION_15_0}"

SUPPORTED_DATABASE_ENGINES = (ENGINE_POSTGRESQL,)
SUPPORTED_ENGINE_VERSIONS = {
    ENGINE_POSTGRESQL: (PSQL_VERSION_15_0,),
}
SUPPORTED_ENGINE_KEYS = (ENGINE_KEY_POSTGRESQL_15_0,)

ENGINE_DISPLAY_NAMES = {
    ENGINE_POSTGRESQL: ENGINE_POSTGRESQL_DISPLAY,
}


def resolve_engine_display_name(engine: str) -> str:
    """Map an engine identifier (e.g. "postgresql") to its display name."""
    try:
        return ENGINE_DISPLAY_NAMES[engine]
    except KeyError:
        raise ValueError(f"Unsupported database engine: {engine}") from None
