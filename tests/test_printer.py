"""Tests for console output modes."""

import json

import pytest

from schemactl.errors import CliError, ErrorCode
from schemactl.output import set_json
from schemactl.printer import Printer


class TestJsonOutput:
    """Tests for --json error output."""

    def test_fail(self, capsys):
        set_json(True)
        Printer().fail(CliError("Timeout", "Too slow", code=ErrorCode.NETWORK_ERROR))

        payload = json.loads(capsys.readouterr().err)
        assert payload == {"type": "fail", "title": "Timeout", "message": "Too slow", "code": "NETWORK_ERROR"}

    def test_error_without_stack(self, capsys):
        set_json(True)
        Printer().error(ValueError("nope"))

        payload = json.loads(capsys.readouterr().err)
        assert payload == {"type": "error", "title": "ValueError", "message": "nope"}

    def test_rollback_warning(self, capsys):
        set_json(True)
        Printer().rollback_warning(["Could not delete config file: x"])

        payload = json.loads(capsys.readouterr().err)
        assert payload["type"] == "rollback_warning"
        assert payload["failures"] == ["Could not delete config file: x"]


class TestQuietMode:
    """Tests for quiet mode."""

    def test_informational_output_suppressed(self, capsys):
        printer = Printer(quiet=True)
        printer.step("step")
        printer.success("done")
        printer.info("info")
        printer.header("Header")

        assert capsys.readouterr().out == ""

    def test_warnings_still_shown(self, capsys):
        Printer(quiet=True).warning("careful")
        assert "careful" in capsys.readouterr().out

    def test_rollback_notifications_still_shown(self, capsys):
        printer = Printer(quiet=True)
        printer.rollback_start()
        printer.rollback_complete()

        out = capsys.readouterr().out
        assert "Rolling back changes" in out
        assert "Rollback complete." in out


class TestPanels:
    """Tests for boxed human-readable output."""

    def test_rollback_warning_panel(self, capsys):
        Printer().rollback_warning(["Could not remove directory: .schemactl"])

        err = capsys.readouterr().err
        assert "Rollback Incomplete" in err
        assert "Could not remove directory" in err

    def test_spinner_reports_failure(self, capsys):
        printer = Printer()
        with pytest.raises(RuntimeError):
            with printer.spinner("Fetching...", fail="Fetch failed"):
                raise RuntimeError("boom")

        assert "Fetch failed" in capsys.readouterr().out

    def test_spinner_reports_success(self, capsys):
        with Printer().spinner("Fetching schema...", success="Fetched"):
            pass

        assert "Fetched" in capsys.readouterr().out
