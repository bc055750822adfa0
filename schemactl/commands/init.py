"""
schemactl init - set up a project from a remote schema.

The command gathers everything it needs up front (API key, remote schema,
local key, snapshots) and only then touches the file system, through an
ExecutionPlan. Every write step carries a compensation so a failure or a
Ctrl+C leaves the directory as it was. Re-initialization backs up the
existing state first and restores it if anything goes wrong.
"""

import logging
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Optional

import click

from schemactl.api import ApiClient
from schemactl.constants import CONFIG_FILE, DEFAULT_SCHEMA_DIR, STATE_DIR, resolve_engine_display_name
from schemactl.errors import CliError, SchemaValidationError
from schemactl.execution import Compensation, ExecutionPlan, Step
from schemactl.printer import printer
from schemactl.schemas import (
    RemoteSchema,
    SchemaConfig,
    SchemaSnapshot,
    latest_snapshot,
    require_local_key,
    validate_api_key,
)
from schemactl.workspace import (
    build_manifest_from_snapshots,
    create_initial_config,
    find_project_root,
    find_schema_id_in_manifests,
    get_config_path,
    get_manifest_path,
    get_schema_state_dir,
    get_snapshot_filename,
    get_snapshots_dir,
    get_state_dir,
    get_working_snapshot_path,
    normalize_schema_name,
    read_config,
    stored_snapshot_data,
    working_snapshot_data,
    write_manifest,
    write_stored_snapshot,
    write_working_snapshot,
)

logger = logging.getLogger(__name__)


def run_init(
    key: Optional[str] = None,
    local_key: Optional[str] = None,
    reinit: bool = False,
    schema_dir: str = DEFAULT_SCHEMA_DIR,
    yes: bool = False,
    dry_run: bool = False,
    quiet: bool = False,
    api_client: Optional[ApiClient] = None,
    cwd: Optional[Path] = None,
) -> None:
    """
    Initialize (or re-initialize) a project.

    Args:
        key: Schema API key; prompted for when omitted
        local_key: Local identifier; defaults to the normalized schema name
        reinit: Replace the state of an existing project
        schema_dir: Directory (relative to the project root) for working snapshots
        yes: Skip confirmation prompts
        dry_run: Describe the file system changes without making them
        quiet: Suppress non-error output
        api_client: Client for the remote API (created from settings when omitted)
        cwd: Directory to start from (defaults to the process working directory)

    Raises:
        CliError: On invalid input, API failures or an already initialized project
        PlanCancelled: If the user interrupted the file system changes
    """
    printer.quiet = quiet
    client = api_client or ApiClient()
    plan = ExecutionPlan(reporter=printer)

    if yes and not quiet:
        printer.warning("Using --yes flag: all confirmation prompts will be skipped")

    existing_root = find_project_root(cwd)
    project_root = existing_root or Path(cwd or Path.cwd()).resolve()
    logger.debug(f"Project root: {project_root} (existing={existing_root is not None})")

    if existing_root is not None and not reinit:
        raise CliError(
            "Project already initialized",
            f"Found existing schemactl project at {existing_root}",
            suggestions=[
                "To re-initialize, run with --reinit / -r flag",
            ],
        )

    if existing_root is not None:
        add_backup_steps(plan, project_root)
    else:
        add_create_state_dir_step(plan, get_state_dir(project_root))

    api_key = key if key is not None else prompt_for_api_key()
    try:
        validate_api_key(api_key)
    except SchemaValidationError as e:
        raise CliError(
            "Invalid API Key",
            f"Provided API key {api_key[:10]!r}... is not valid",
            suggestions=["The key did not pass format validation, please double-check and try again"],
            cause=e,
        ) from e

    schema = fetch_and_confirm_schema(client, api_key, yes)

    if not reinit:
        existing_key = find_schema_id_in_manifests(project_root, schema.id)
        if existing_key:
            raise CliError(
                "Schema already exists",
                f"This schema is already configured as {existing_key!r}",
                suggestions=["Use 'schemactl init --reinit' to start fresh"],
            )

    schema_key = resolve_local_key(local_key, schema.name, yes, quiet)
    snapshots = fetch_snapshots(client, api_key)

    schema_config = SchemaConfig(
        key=api_key,
        engine=resolve_engine_display_name(schema.engine),
        dir=schema_dir or DEFAULT_SCHEMA_DIR,
    )
    add_config_step(plan, project_root, schema_key, schema_config)
    add_manifest_step(plan, project_root, schema_key, schema.id, snapshots)
    add_snapshot_files_step(plan, project_root, schema_key, schema_config.dir, schema, snapshots)

    plan.run(dry=dry_run)

    printer.spacer()
    if dry_run:
        printer.info("Dry run complete - no changes were made")
        return

    if not quiet:
        printer.warning("Make sure to add your API key to environment variables for secure access!")
        printer.spacer()
    if reinit:
        printer.success("Project re-initialized successfully")
    else:
        printer.success("Project initialized successfully")


# -----------------------------------------------------------------------------
# Input gathering
# -----------------------------------------------------------------------------


def prompt_for_api_key() -> str:
    printer.spacer()
    printer.header("Authentication")
    printer.text("Enter API key to import schema & snapshots from remote", indent=3)
    return click.prompt("   API Key", hide_input=True)


def fetch_and_confirm_schema(client: ApiClient, key: str, yes: bool) -> RemoteSchema:
    """
    Fetch the remote schema and ask the user to confirm it.

    Raises:
        CliError: If fetching fails or the user declines
    """
    printer.spacer()
    with printer.spinner(
        "Fetching schema from remote...",
        success="Schema fetched successfully",
        fail="Failed to fetch schema",
    ):
        schema = client.get_schema(key)

    printer.header("Schema Details")
    printer.key_value("Name", schema.name)
    printer.key_value("Engine", resolve_engine_display_name(schema.engine))
    printer.spacer()

    if not yes and not click.confirm("   Is the above information correct?", default=True):
        raise CliError(
            "Schema Initialization Aborted",
            "The schema initialization process has been cancelled by the user",
        )
    return schema


def fetch_snapshots(client: ApiClient, key: str) -> list[SchemaSnapshot]:
    printer.spacer()
    with printer.spinner(
        "Fetching snapshots from remote...",
        success="Snapshots fetched successfully",
        fail="Failed to fetch snapshots",
    ):
        return client.list_snapshots(key)


def _local_key_value(value: str) -> str:
    try:
        return require_local_key(value)
    except SchemaValidationError:
        raise click.BadParameter(
            "Only lowercase letters, numbers, hyphens, underscores, and dots allowed (no spaces)"
        ) from None


def resolve_local_key(provided_key: Optional[str], schema_name: str, yes: bool, quiet: bool) -> str:
    """
    Pick the local key: the flag value, the normalized schema name under
    --yes / --quiet, or an interactive prompt defaulting to that name.

    Raises:
        CliError: If the flag value is not a valid local key
    """
    default_key = normalize_schema_name(schema_name)

    if provided_key:
        try:
            return require_local_key(provided_key)
        except SchemaValidationError as e:
            raise CliError(
                "Invalid local key",
                f"The provided local key {provided_key!r} is not valid",
                suggestions=[
                    "Local key can only contain lowercase letters, numbers, hyphens, underscores, and dots",
                    "Local key cannot contain spaces and must be 1-64 characters",
                ],
                cause=e,
            ) from e

    if quiet or yes:
        return default_key

    printer.spacer()
    printer.header("Local Identifier")
    printer.text(f"Choose a local identifier for this schema (used in config and {STATE_DIR}/)", indent=3)
    return click.prompt("   Local key", default=default_key, value_proc=_local_key_value)


# -----------------------------------------------------------------------------
# Plan steps
# -----------------------------------------------------------------------------


def add_create_state_dir_step(plan: ExecutionPlan, state_dir: Path) -> None:
    plan.add(
        Step(
            name=f"Create {STATE_DIR} directory",
            forward=lambda: state_dir.mkdir(parents=True, exist_ok=True),
            simulate=lambda: printer.step(f"Would create directory: {state_dir}"),
            compensate=Compensation(
                action=lambda: shutil.rmtree(state_dir),
                failure_message=f"Could not remove directory: {state_dir}",
            ),
        )
    )


def add_backup_steps(plan: ExecutionPlan, project_root: Path) -> None:
    """
    Add the "Backup existing state" and "Clear existing state" steps.

    The backup lives in the system temp directory. Its compensation
    restores the state dir, the config and every working snapshot; its
    on_plan_success hook deletes the backup.
    """
    backup_dir = Path(tempfile.gettempdir()) / f"schemactl-backup-{uuid.uuid4()}"
    state_dir = get_state_dir(project_root)
    config_path = get_config_path(project_root)
    backup_state_dir = backup_dir / STATE_DIR
    backup_config_path = backup_dir / CONFIG_FILE

    existing_config = read_config(project_root)
    working_files: list[tuple[Path, Path]] = []
    for index, (schema_key, schema_config) in enumerate(existing_config.schemas.items()):
        working_path = get_working_snapshot_path(project_root, schema_config.dir, schema_key)
        if working_path.is_file():
            working_files.append((working_path, backup_dir / "working" / f"{index}_{working_path.name}"))

    def backup() -> None:
        backup_dir.mkdir(parents=True)
        if state_dir.is_dir():
            shutil.copytree(state_dir, backup_state_dir)
        if config_path.is_file():
            shutil.copy2(config_path, backup_config_path)
        for src, dest in working_files:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dest)
        logger.debug(f"Backed up existing state to {backup_dir}")

    def simulate_backup() -> None:
        printer.step(f"Would backup {STATE_DIR}/ directory")
        printer.step(f"Would backup {CONFIG_FILE}")
        if working_files:
            printer.step(f"Would backup {len(working_files)} working snapshot(s)")

    def restore() -> None:
        if not backup_dir.is_dir():
            return
        if backup_state_dir.is_dir():
            if state_dir.exists():
                shutil.rmtree(state_dir)
            shutil.copytree(backup_state_dir, state_dir)
        if backup_config_path.is_file():
            shutil.copy2(backup_config_path, config_path)
        for src, dest in working_files:
            if dest.is_file():
                src.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(dest, src)
        shutil.rmtree(backup_dir)

    def discard_backup() -> None:
        if backup_dir.exists():
            shutil.rmtree(backup_dir)

    plan.add(
        Step(
            name="Backup existing state",
            forward=backup,
            simulate=simulate_backup,
            on_plan_success=discard_backup,
            compensate=Compensation(restore, f"Could not restore from backup: {backup_dir}"),
        )
    )

    def clear() -> None:
        if state_dir.is_dir():
            shutil.rmtree(state_dir)
            state_dir.mkdir(parents=True)
        for src, _ in working_files:
            src.unlink(missing_ok=True)

    def simulate_clear() -> None:
        printer.step(f"Would clear existing {STATE_DIR}/ directory")
        if working_files:
            printer.step(f"Would remove {len(working_files)} existing working snapshot(s)")

    # The backup step's compensation restores what this step removes
    plan.add(Step(name="Clear existing state", forward=clear, simulate=simulate_clear))


def add_config_step(
    plan: ExecutionPlan,
    project_root: Path,
    schema_key: str,
    schema_config: SchemaConfig,
) -> None:
    config_path = get_config_path(project_root)
    plan.add(
        Step(
            name=f"Write {CONFIG_FILE}",
            forward=lambda: create_initial_config(project_root, schema_key, schema_config),
            simulate=lambda: printer.step(f"Would write config to: {config_path}"),
            compensate=Compensation(
                action=config_path.unlink,
                failure_message=f"Could not delete config file: {config_path}",
            ),
        )
    )


def add_manifest_step(
    plan: ExecutionPlan,
    project_root: Path,
    schema_key: str,
    schema_id: str,
    snapshots: list[SchemaSnapshot],
) -> None:
    """Build the manifest now (verifying hashes) and add the step writing it."""
    manifest = build_manifest_from_snapshots(schema_id, snapshots)
    manifest_path = get_manifest_path(project_root, schema_key)
    schema_state_dir = get_schema_state_dir(project_root, schema_key)

    def simulate() -> None:
        printer.step(f"Would create directory: {schema_state_dir}")
        printer.step(f"Would write manifest to: {manifest_path}")

    plan.add(
        Step(
            name="Write manifest.yml",
            forward=lambda: write_manifest(project_root, schema_key, manifest),
            simulate=simulate,
            compensate=Compensation(
                action=lambda: shutil.rmtree(schema_state_dir),
                failure_message=f"Could not remove schema directory: {schema_state_dir}",
            ),
        )
    )


def add_snapshot_files_step(
    plan: ExecutionPlan,
    project_root: Path,
    schema_key: str,
    schema_dir: str,
    schema: RemoteSchema,
    snapshots: list[SchemaSnapshot],
) -> None:
    """Add the step writing stored snapshots plus the working snapshot."""
    current = latest_snapshot(snapshots)
    if current is None:
        return

    snapshots_dir = get_snapshots_dir(project_root, schema_key)
    working_path = get_working_snapshot_path(project_root, schema_dir, schema_key)
    stored = [s for s in snapshots if s is not current]

    def write_files() -> None:
        for snapshot in stored:
            filename = get_snapshot_filename(snapshot.created_at, snapshot.label)
            write_stored_snapshot(project_root, schema_key, filename, stored_snapshot_data(snapshot))
        write_working_snapshot(project_root, schema_dir, schema_key, working_snapshot_data(schema, current))

    def simulate() -> None:
        if stored:
            printer.step(f"Would create directory: {snapshots_dir}")
            printer.step(f"Would write {len(stored)} stored snapshot file(s)")
        printer.step(f"Would write working snapshot to: {working_path}")

    def remove_files() -> None:
        if snapshots_dir.exists():
            shutil.rmtree(snapshots_dir)
        working_path.unlink(missing_ok=True)

    plan.add(
        Step(
            name="Write snapshot files",
            forward=write_files,
            simulate=simulate,
            compensate=Compensation(remove_files, "Could not remove snapshot files"),
        )
    )
