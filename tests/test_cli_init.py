"""End-to-end tests for `schemactl init` through click's CliRunner."""

import json
import logging
import tempfile

import pytest
import yaml
from click.testing import CliRunner

from schemactl.cli import main

from conftest import SCHEMA_ID, SNAPSHOT_V1_ID, SNAPSHOT_V2_ID, VALID_API_KEY


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def project(tmp_path, monkeypatch, fake_api):
    """Empty working directory with the API client replaced by canned data."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("schemactl.commands.init.ApiClient", lambda: fake_api)
    backups = tmp_path.parent / f"{tmp_path.name}-tmp"
    backups.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(backups))
    return tmp_path


def init_args(*extra):
    return ["init", "--key", VALID_API_KEY, "--yes", *extra]


class TestInit:
    """Tests for a fresh initialization."""

    def test_creates_project_files(self, runner, project):
        result = runner.invoke(main, init_args())

        assert result.exit_code == 0, result.output
        assert "Project initialized successfully" in result.output

        config = yaml.safe_load((project / "schemactl.yml").read_text())
        assert config == {
            "schemas": {
                "my_shop_db": {
                    "dir": "db-schemas",
                    "key": VALID_API_KEY,
                    "engine": "PostgreSQL",
                    "envs": {},
                }
            }
        }

        state_dir = project / ".schemactl" / "my_shop_db"
        manifest = yaml.safe_load((state_dir / "manifest.yml").read_text())
        assert manifest["schema-id"] == SCHEMA_ID
        assert manifest["snapshots"][SNAPSHOT_V2_ID]["file"] == "current"
        assert manifest["snapshots"][SNAPSHOT_V1_ID]["file"] == "2024-01-15_v1.0.0.yml"

        assert (state_dir / "snapshots" / "2024-01-15_v1.0.0.yml").is_file()
        working = yaml.safe_load((project / "db-schemas" / "my_shop_db.yml").read_text())
        assert working["snapshot"]["label"] == "v1.1.0"

    def test_custom_local_key_and_dir(self, runner, project):
        result = runner.invoke(main, init_args("--local-key", "shop", "--dir", "schemas"))

        assert result.exit_code == 0, result.output
        assert (project / ".schemactl" / "shop" / "manifest.yml").is_file()
        assert (project / "schemas" / "shop.yml").is_file()

    def test_invalid_local_key(self, runner, project):
        result = runner.invoke(main, init_args("--local-key", "Not Valid"))

        assert result.exit_code == 1
        assert "Invalid local key" in result.output
        assert not (project / ".schemactl").exists()

    def test_yes_prints_warning(self, runner, project):
        result = runner.invoke(main, init_args())
        assert "all confirmation prompts will be skipped" in result.output

    def test_dry_run_changes_nothing(self, runner, project):
        result = runner.invoke(main, init_args("--dry-run"))

        assert result.exit_code == 0, result.output
        assert "Would create directory" in result.output
        assert "Would write config to" in result.output
        assert "Dry run complete - no changes were made" in result.output
        assert list(project.iterdir()) == []

    def test_quiet_suppresses_output(self, runner, project):
        result = runner.invoke(main, init_args("--quiet"))

        assert result.exit_code == 0, result.output
        assert result.output.strip() == ""
        assert (project / "schemactl.yml").is_file()

    def test_interactive_flow(self, runner, project, fake_api):
        """Key, confirmation and local key come from prompts."""
        result = runner.invoke(main, ["init"], input=f"{VALID_API_KEY}\ny\nshop\n")

        assert result.exit_code == 0, result.output
        assert fake_api.keys[0] == VALID_API_KEY
        config = yaml.safe_load((project / "schemactl.yml").read_text())
        assert list(config["schemas"]) == ["shop"]

    def test_declined_confirmation(self, runner, project):
        result = runner.invoke(main, ["init", "--key", VALID_API_KEY], input="n\n")

        assert result.exit_code == 1
        assert "Schema Initialization Aborted" in result.output
        assert not (project / "schemactl.yml").exists()

    def test_prompt_abort_exits_130(self, runner, project):
        """End of input at a prompt behaves like Ctrl+C."""
        result = runner.invoke(main, ["init"], input="")

        assert result.exit_code == 130
        assert "FAIL" not in result.output


class TestInitErrors:
    """Tests for rejected initializations."""

    def test_quiet_requires_key_and_yes(self, runner, project):
        result = runner.invoke(main, ["init", "--quiet"])

        assert result.exit_code == 1
        assert "Invalid flag combination" in result.output
        assert "--quiet requires --key and --yes flags" in result.output

    def test_quiet_requires_yes(self, runner, project):
        result = runner.invoke(main, ["init", "--quiet", "--key", VALID_API_KEY])

        assert result.exit_code == 1
        assert "--quiet requires --yes flag" in result.output

    def test_json_error_output(self, runner, project):
        result = runner.invoke(main, ["--json", "init", "--quiet"])

        assert result.exit_code == 1
        payload = json.loads(result.output)
        assert payload["type"] == "fail"
        assert payload["title"] == "Invalid flag combination"

    def test_log_file_records_failures(self, runner, project):
        log_file = project / "logs" / "schemactl.log"
        try:
            result = runner.invoke(main, ["-v", "--log-file", str(log_file), "init", "--quiet"])
        finally:
            package_logger = logging.getLogger("schemactl")
            for handler in package_logger.handlers:
                handler.close()
            package_logger.handlers = []

        assert result.exit_code == 1
        records = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert any(r["message"].startswith("CLI failure: Invalid flag combination") for r in records)

    def test_invalid_api_key(self, runner, project):
        result = runner.invoke(main, ["init", "--key", "sk_bad", "--yes"])

        assert result.exit_code == 1
        assert "Invalid API Key" in result.output

    def test_already_initialized(self, runner, project):
        (project / "schemactl.yml").write_text("schemas: {}\n")

        result = runner.invoke(main, init_args())

        assert result.exit_code == 1
        assert "Project already initialized" in result.output

    def test_schema_already_tracked(self, runner, project):
        manifest = project / ".schemactl" / "existing" / "manifest.yml"
        manifest.parent.mkdir(parents=True)
        manifest.write_text(f"schema-id: {SCHEMA_ID}\n")

        result = runner.invoke(main, init_args())

        assert result.exit_code == 1
        assert "Schema already exists" in result.output

    def test_hash_mismatch_writes_nothing(self, runner, project, fake_api):
        fake_api.snapshot_payloads[0]["contentHash"] = "sha256:" + "0" * 64

        result = runner.invoke(main, init_args())

        assert result.exit_code == 1
        assert "Hash Verification Failed" in result.output
        assert list(project.iterdir()) == []

    def test_failed_write_rolls_back(self, runner, project, monkeypatch):
        def broken(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr("schemactl.commands.init.write_working_snapshot", broken)

        result = runner.invoke(main, init_args())

        assert result.exit_code == 1
        assert "Rolling back changes" in result.output
        assert "Rollback complete." in result.output
        assert "disk full" in result.output
        assert list(project.iterdir()) == []


class TestReinit:
    """Tests for --reinit."""

    def test_reinit_replaces_state_and_discards_backup(self, runner, project):
        assert runner.invoke(main, init_args("--local-key", "old")).exit_code == 0

        result = runner.invoke(main, init_args("--reinit", "--local-key", "new"))

        assert result.exit_code == 0, result.output
        assert "Project re-initialized successfully" in result.output
        config = yaml.safe_load((project / "schemactl.yml").read_text())
        assert list(config["schemas"]) == ["new"]
        assert not (project / ".schemactl" / "old").exists()
        assert not (project / "db-schemas" / "old.yml").exists()
        assert (project / "db-schemas" / "new.yml").is_file()
        assert list((project.parent / f"{project.name}-tmp").iterdir()) == []

    def test_reinit_failure_restores_backup(self, runner, project, monkeypatch):
        assert runner.invoke(main, init_args("--local-key", "old")).exit_code == 0
        original_config = (project / "schemactl.yml").read_text()
        original_working = (project / "db-schemas" / "old.yml").read_text()

        def broken(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr("schemactl.commands.init.write_working_snapshot", broken)
        result = runner.invoke(main, init_args("--reinit", "--local-key", "new"))

        assert result.exit_code == 1
        assert (project / "schemactl.yml").read_text() == original_config
        assert (project / "db-schemas" / "old.yml").read_text() == original_working
        assert (project / ".schemactl" / "old" / "manifest.yml").is_file()
        assert not (project / ".schemactl" / "new").exists()

    def test_reinit_dry_run(self, runner, project):
        assert runner.invoke(main, init_args()).exit_code == 0

        result = runner.invoke(main, init_args("--reinit", "--dry-run"))

        assert result.exit_code == 0, result.output
        assert "Would backup .schemactl/ directory" in result.output
        assert "Would remove 1 existing working snapshot(s)" in result.output
