"""Tests for the local project files (schemactl.workspace)."""

from datetime import datetime, timezone

import pytest
import yaml

from schemactl.errors import CliError
from schemactl.schemas import ProjectConfig, SchemaConfig
from schemactl.workspace import (
    build_manifest_from_snapshots,
    create_initial_config,
    find_project_root,
    find_schema_id_in_manifests,
    get_manifest_path,
    get_snapshot_filename,
    get_working_snapshot_path,
    manifest_exists,
    normalize_schema_name,
    read_config,
    read_manifest,
    read_working_snapshot,
    stored_snapshot_data,
    working_snapshot_data,
    write_manifest,
    write_stored_snapshot,
    write_working_snapshot,
)
from schemactl.workspace.yaml_io import dump_yaml

from conftest import SCHEMA_ID, SNAPSHOT_V1_ID, SNAPSHOT_V2_ID, VALID_API_KEY

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestPaths:
    """Tests for project root discovery and path helpers."""

    def test_find_project_root_walks_upward(self, tmp_path):
        (tmp_path / "schemactl.yml").write_text("schemas: {}\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        assert find_project_root(nested) == tmp_path.resolve()

    def test_find_project_root_none(self, tmp_path):
        assert find_project_root(tmp_path) is None

    def test_directory_named_like_config_is_ignored(self, tmp_path):
        (tmp_path / "schemactl.yml").mkdir()
        assert find_project_root(tmp_path) is None

    def test_snapshot_filename_uses_utc_date(self):
        created = datetime(2024, 1, 15, 23, 30, tzinfo=timezone.utc)
        assert get_snapshot_filename(created, "v1.0.0") == "2024-01-15_v1.0.0.yml"

    def test_working_snapshot_path(self, tmp_path):
        assert get_working_snapshot_path(tmp_path, "db-schemas", "shop") == tmp_path / "db-schemas" / "shop.yml"


class TestNormalizeSchemaName:
    """Tests for deriving local keys from schema names."""

    @pytest.mark.parametrize("name, expected", [
        ("My Shop DB", "my_shop_db"),
        ("  Orders   Service ", "orders_service"),
        ("Billing (v2)", "billing_v2"),
        ("already-ok.name_1", "already-ok.name_1"),
    ])
    def test_normalize(self, name, expected):
        assert normalize_schema_name(name) == expected


class TestProjectConfigFile:
    """Tests for reading and writing schemactl.yml."""

    def test_write_and_read(self, tmp_path):
        schema_config = SchemaConfig(key=VALID_API_KEY, engine="PostgreSQL")
        path = create_initial_config(tmp_path, "shop", schema_config)

        assert path == tmp_path / "schemactl.yml"
        config = read_config(tmp_path)
        assert config == ProjectConfig(schemas={"shop": schema_config})

    def test_key_order_is_preserved(self, tmp_path):
        create_initial_config(tmp_path, "shop", SchemaConfig(key=VALID_API_KEY, engine="PostgreSQL"))
        text = (tmp_path / "schemactl.yml").read_text()

        assert text.index("dir:") < text.index("key:") < text.index("engine:")

    def test_missing_config(self, tmp_path):
        with pytest.raises(CliError) as exc_info:
            read_config(tmp_path)
        assert exc_info.value.title == "Config Not Found"

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "schemactl.yml").write_text("schemas: [unclosed\n")
        with pytest.raises(CliError) as exc_info:
            read_config(tmp_path)
        assert exc_info.value.title == "Invalid Config"

    def test_invalid_shape(self, tmp_path):
        (tmp_path / "schemactl.yml").write_text("schemas:\n  shop:\n    engine: PostgreSQL\n")
        with pytest.raises(CliError, match="could not be read"):
            read_config(tmp_path)

    def test_empty_file(self, tmp_path):
        (tmp_path / "schemactl.yml").write_text("")
        with pytest.raises(CliError, match="empty"):
            read_config(tmp_path)


class TestBuildManifest:
    """Tests for build_manifest_from_snapshots."""

    def test_newest_snapshot_is_current(self, snapshots):
        manifest = build_manifest_from_snapshots(SCHEMA_ID, snapshots, now=NOW)

        assert manifest.schema_id == SCHEMA_ID
        assert manifest.snapshots[SNAPSHOT_V2_ID].file == "current"
        assert manifest.snapshots[SNAPSHOT_V1_ID].file == "2024-01-15_v1.0.0.yml"

    def test_entries_are_synced(self, snapshots):
        manifest = build_manifest_from_snapshots(SCHEMA_ID, snapshots, now=NOW)
        entry = manifest.snapshots[SNAPSHOT_V2_ID]

        assert entry.sync_state == "synced"
        assert entry.synced_at == "2024-03-01T12:00:00.000Z"
        assert entry.parent_id == SNAPSHOT_V1_ID
        assert entry.database_version == "v15.0"
        assert entry.created_at == "2024-02-01T08:00:00.000Z"

    def test_order_follows_input(self, snapshots):
        manifest = build_manifest_from_snapshots(SCHEMA_ID, list(reversed(snapshots)), now=NOW)
        assert list(manifest.snapshots) == [SNAPSHOT_V2_ID, SNAPSHOT_V1_ID]

    def test_no_snapshots(self):
        manifest = build_manifest_from_snapshots(SCHEMA_ID, [], now=NOW)
        assert manifest.snapshots == {}

    def test_hash_mismatch(self, snapshot_payloads):
        from schemactl.schemas import SchemaSnapshot

        snapshot_payloads[0]["contentHash"] = "sha256:" + "0" * 64
        tampered = [SchemaSnapshot.from_api(p) for p in snapshot_payloads]

        with pytest.raises(CliError) as exc_info:
            build_manifest_from_snapshots(SCHEMA_ID, tampered)

        assert exc_info.value.title == "Hash Verification Failed"
        assert exc_info.value.hints[0] == "Expected: sha256:" + "0" * 64


class TestManifestFile:
    """Tests for writing and reading manifest.yml."""

    def test_write_has_header_and_spacing(self, tmp_path, snapshots):
        manifest = build_manifest_from_snapshots(SCHEMA_ID, snapshots, now=NOW)
        path = write_manifest(tmp_path, "shop", manifest)

        text = path.read_text()
        assert path == tmp_path / ".schemactl" / "shop" / "manifest.yml"
        assert text.startswith("# WARNING: This file is managed by schemactl.")
        assert f"\n\n  {SNAPSHOT_V2_ID}:" in text
        assert yaml.safe_load(text)["schema-id"] == SCHEMA_ID

    def test_round_trip(self, tmp_path, snapshots):
        manifest = build_manifest_from_snapshots(SCHEMA_ID, snapshots, now=NOW)
        write_manifest(tmp_path, "shop", manifest)

        assert manifest_exists(tmp_path, "shop")
        assert read_manifest(tmp_path, "shop", "postgresql") == manifest

    def test_read_missing(self, tmp_path):
        with pytest.raises(CliError) as exc_info:
            read_manifest(tmp_path, "shop", "postgresql")
        assert exc_info.value.title == "Manifest Not Found"

    def test_read_invalid(self, tmp_path):
        path = get_manifest_path(tmp_path, "shop")
        path.parent.mkdir(parents=True)
        path.write_text("schema-id: not-a-uuid\nsnapshots: {}\n")

        with pytest.raises(CliError) as exc_info:
            read_manifest(tmp_path, "shop", "postgresql")
        assert exc_info.value.title == "Invalid Manifest"


class TestFindSchemaId:
    """Tests for find_schema_id_in_manifests."""

    def test_no_state_dir(self, tmp_path):
        assert find_schema_id_in_manifests(tmp_path, SCHEMA_ID) is None

    def test_finds_local_key(self, tmp_path):
        path = get_manifest_path(tmp_path, "shop")
        path.parent.mkdir(parents=True)
        path.write_text(f"schema-id: {SCHEMA_ID}\n")

        assert find_schema_id_in_manifests(tmp_path, SCHEMA_ID) == "shop"

    def test_skips_unreadable_manifests(self, tmp_path):
        broken = get_manifest_path(tmp_path, "broken")
        broken.parent.mkdir(parents=True)
        broken.write_text("schema-id: [unclosed\n")
        (tmp_path / ".schemactl" / "no-manifest").mkdir()
        other = get_manifest_path(tmp_path, "other")
        other.parent.mkdir(parents=True)
        other.write_text("schema-id: 00000000-0000-4000-8000-000000000000\n")

        assert find_schema_id_in_manifests(tmp_path, SCHEMA_ID) is None


class TestSnapshotFiles:
    """Tests for stored and working snapshot files."""

    def test_stored_snapshot(self, tmp_path, snapshots):
        path = write_stored_snapshot(tmp_path, "shop", "2024-01-15_v1.0.0.yml", stored_snapshot_data(snapshots[0]))

        assert path == tmp_path / ".schemactl" / "shop" / "snapshots" / "2024-01-15_v1.0.0.yml"
        data = yaml.safe_load(path.read_text())
        assert data == {"description": "Initial", "tables": snapshots[0].tables}

    def test_stored_snapshot_without_description(self, snapshots):
        assert "description" not in stored_snapshot_data(snapshots[1])

    def test_working_snapshot(self, tmp_path, remote_schema, snapshots):
        data = working_snapshot_data(remote_schema, snapshots[1])
        path = write_working_snapshot(tmp_path, "db-schemas", "shop", data)

        text = path.read_text()
        assert text.startswith("# NOTE: Schema name and description are detached from remote.")
        assert "\n\nsnapshot:\n" in text
        assert read_working_snapshot(tmp_path, "db-schemas", "shop") == {
            "schema": {"name": "My Shop DB", "description": "Storefront database"},
            "snapshot": {
                "label": "v1.1.0",
                "engine-version": "v15.0",
                "tables": snapshots[1].tables,
            },
        }

    def test_read_working_snapshot_missing(self, tmp_path):
        with pytest.raises(CliError) as exc_info:
            read_working_snapshot(tmp_path, "db-schemas", "shop")
        assert exc_info.value.title == "Working Snapshot Not Found"

    def test_read_working_snapshot_invalid(self, tmp_path):
        path = get_working_snapshot_path(tmp_path, "db-schemas", "shop")
        path.parent.mkdir(parents=True)
        path.write_text("schema:\n  name: x\nsnapshot:\n  label: v1\n")

        with pytest.raises(CliError) as exc_info:
            read_working_snapshot(tmp_path, "db-schemas", "shop")
        assert exc_info.value.title == "Invalid Working Snapshot"


class TestYamlDump:
    """Tests for the YAML writer."""

    def test_comment_block(self):
        text = dump_yaml({"a": 1}, comment="line one\nline two")
        assert text == "# line one\n# line two\na: 1\n"

    def test_space_entries(self):
        text = dump_yaml({"items": {"x": {"v": 1}, "y": {"v": 2}}}, space_entries=True)
        assert text == "items:\n  x:\n    v: 1\n\n  y:\n    v: 2\n"
