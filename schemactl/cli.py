"""
CLI interface for schemactl.

Manage database schemas like code: pull a remote schema and its snapshot
history into a local project, then version it alongside your code.
"""

import logging
import sys
from pathlib import Path
from typing import NoReturn, Optional

import click

from schemactl import __version__
from schemactl.constants import DEFAULT_SCHEMA_DIR
from schemactl.errors import EXIT_GENERAL_ERROR, EXIT_SIGINT, CliError
from schemactl.output import is_json, reset_output_options, set_json, set_verbose
from schemactl.printer import printer
from schemactl.utils import setup_logging

logger = logging.getLogger(__name__)


def handle_root_error(err: BaseException) -> NoReturn:
    """
    Report an error that reached the top of the CLI and exit.

    - User cancellation (Ctrl+C at a prompt) exits with 130 silently
    - CliError is an expected failure: FAIL panel, exit 1
    - Anything else is unexpected: ERROR panel, exit 1
    """
    if isinstance(err, (click.Abort, KeyboardInterrupt)):
        printer.spacer()
        sys.exit(EXIT_SIGINT)

    if isinstance(err, CliError):
        logger.debug(f"CLI failure: {err.title}: {err.message}")
        printer.fail(err)
        sys.exit(EXIT_GENERAL_ERROR)

    logger.debug("Unexpected error", exc_info=err)
    printer.error(err)
    sys.exit(EXIT_GENERAL_ERROR)


class SchemactlGroup(click.Group):
    """Command group that routes command errors through handle_root_error."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except (click.exceptions.Exit, click.ClickException):
            raise
        except (click.Abort, KeyboardInterrupt, Exception) as e:
            handle_root_error(e)


@click.group(cls=SchemactlGroup)
@click.version_option(version=__version__, prog_name="schemactl")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output for debugging")
@click.option("--json", "json_output", is_flag=True, help="Output errors in JSON format")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write log records to this file as JSON lines",
)
def main(verbose: bool, json_output: bool, log_file: Optional[Path]):
    """
    schemactl - Manage database schemas like code.

    Version control, team collaboration, and seamless migrations.
    """
    reset_output_options()
    printer.quiet = False
    set_verbose(verbose)
    set_json(json_output)
    setup_logging(
        log_level="DEBUG" if verbose else "WARNING",
        log_format="structured" if is_json() else "pretty",
        log_file=log_file,
    )


@main.command("init")
@click.option("-k", "--key", help="API key (skips interactive prompt)")
@click.option(
    "-l", "--local-key",
    help="Local identifier for the schema (defaults to normalized remote name)",
)
@click.option("-r", "--reinit", is_flag=True, help="Re-initialize schemactl (clears all schemas and snapshots)")
@click.option(
    "-d", "--dir", "schema_dir",
    default=DEFAULT_SCHEMA_DIR,
    show_default=True,
    help="Directory for working schema files",
)
@click.option("-y", "--yes", is_flag=True, help="Skip all confirmation prompts (use with caution)")
@click.option("--dry-run", is_flag=True, help="Simulate actions without making any changes")
@click.option("-q", "--quiet", is_flag=True, help="Suppress all output except errors (requires --key and --yes)")
def init(key, local_key, reinit, schema_dir, yes, dry_run, quiet):
    """Initialize schemactl with your API key."""
    from schemactl.commands.init import run_init

    if quiet and (not key or not yes):
        missing = [flag for flag, value in (("--key", key), ("--yes", yes)) if not value]
        raise CliError(
            "Invalid flag combination",
            f"--quiet requires {' and '.join(missing)} flag{'s' if len(missing) > 1 else ''}",
            suggestions=[
                "Quiet mode cannot prompt for input or confirmation",
                "Usage: schemactl init --quiet --key <KEY> --yes",
            ],
        )

    run_init(
        key=key,
        local_key=local_key,
        reinit=reinit,
        schema_dir=schema_dir,
        yes=yes,
        dry_run=dry_run,
        quiet=quiet,
        cwd=Path.cwd(),
    )


if __name__ == "__main__":
    main()
