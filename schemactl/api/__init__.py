"""Remote schema API access."""

from .client import ApiClient, SCHEMA_PATH, SNAPSHOTS_PATH

__all__ = ["ApiClient", "SCHEMA_PATH", "SNAPSHOTS_PATH"]
