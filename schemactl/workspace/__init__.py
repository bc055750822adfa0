"""
schemactl.workspace - local project files.

Everything that touches the project directory on disk: locating the
project root, schemactl.yml, manifests and snapshot files.
"""

from .paths import (
    find_project_root,
    get_config_path,
    get_manifest_path,
    get_schema_dir,
    get_schema_state_dir,
    get_snapshot_filename,
    get_snapshots_dir,
    get_state_dir,
    get_stored_snapshot_path,
    get_working_snapshot_path,
)
from .project import (
    create_initial_config,
    normalize_schema_name,
    read_config,
    write_config,
)
from .manifest import (
    build_manifest_from_snapshots,
    find_schema_id_in_manifests,
    manifest_exists,
    read_manifest,
    write_manifest,
)
from .snapshots import (
    read_working_snapshot,
    stored_snapshot_data,
    working_snapshot_data,
    write_stored_snapshot,
    write_working_snapshot,
)

__all__ = [
    # Paths
    "find_project_root",
    "get_config_path",
    "get_manifest_path",
    "get_schema_dir",
    "get_schema_state_dir",
    "get_snapshot_filename",
    "get_snapshots_dir",
    "get_state_dir",
    "get_stored_snapshot_path",
    "get_working_snapshot_path",
    # Config
    "create_initial_config",
    "normalize_schema_name",
    "read_config",
    "write_config",
    # Manifest
    "build_manifest_from_snapshots",
    "find_schema_id_in_manifests",
    "manifest_exists",
    "read_manifest",
    "write_manifest",
    # Snapshots
    "read_working_snapshot",
    "stored_snapshot_data",
    "working_snapshot_data",
    "write_stored_snapshot",
    "write_working_snapshot",
]
