"""
Project file layout.

    <root>/schemactl.yml                                  project config
    <root>/.schemactl/<local-key>/manifest.yml            snapshot index
    <root>/.schemactl/<local-key>/snapshots/<file>.yml    stored snapshots
    <root>/<dir>/<local-key>.yml                          working snapshot
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from schemactl.constants import CONFIG_FILE, MANIFEST_FILE, SNAPSHOTS_DIR, STATE_DIR


def find_project_root(start_dir: Optional[Path] = None) -> Optional[Path]:
    """
    Walk upward from start_dir looking for a schemactl.yml file.

    Returns:
        The directory containing the config file, or None
    """
    current = Path(start_dir or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        if (directory / CONFIG_FILE).is_file():
            return directory
    return None


def get_state_dir(project_root: Path) -> Path:
    return project_root / STATE_DIR


def get_config_path(project_root: Path) -> Path:
    return project_root / CONFIG_FILE


def get_schema_dir(project_root: Path, schema_dir: str) -> Path:
    return project_root / schema_dir


def get_schema_state_dir(project_root: Path, local_key: str) -> Path:
    return get_state_dir(project_root) / local_key


def get_manifest_path(project_root: Path, local_key: str) -> Path:
    return get_schema_state_dir(project_root, local_key) / MANIFEST_FILE


def get_snapshots_dir(project_root: Path, local_key: str) -> Path:
    return get_schema_state_dir(project_root, local_key) / SNAPSHOTS_DIR


def get_stored_snapshot_path(project_root: Path, local_key: str, filename: str) -> Path:
    return get_snapshots_dir(project_root, local_key) / filename


def get_working_snapshot_path(project_root: Path, schema_dir: str, local_key: str) -> Path:
    return get_schema_dir(project_root, schema_dir) / f"{local_key}.yml"


def get_snapshot_filename(created_at: datetime, label: str) -> str:
    """Stored snapshot file name: <UTC date>_<label>.yml"""
    return f"{created_at.astimezone(timezone.utc).date().isoformat()}_{label}.yml"
