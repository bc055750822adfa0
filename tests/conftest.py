import pytest

from schemactl.constants import ENGINE_KEY_POSTGRESQL_15_0
from schemactl.output import reset_output_options
from schemactl.printer import printer
from schemactl.schemas import RemoteSchema, SchemaSnapshot
from schemactl.utils import compute_content_hash

SCHEMA_ID = "3f1c2a4e-5b6d-4c7e-8f90-1a2b3c4d5e6f"
PROJECT_ID = "7a8b9c0d-1e2f-4a3b-9c4d-5e6f7a8b9c0d"
SNAPSHOT_V1_ID = "11111111-1111-4111-8111-111111111111"
SNAPSHOT_V2_ID = "22222222-2222-4222-9222-222222222222"
VALID_API_KEY = "sk_9d8c7b6a-5f4e-4d3c-a2b1-0f9e8d7c6b5a_" + "0123456789abcdef" * 4


class RecordingReporter:
    """Reporter that records every notification in order."""

    def __init__(self):
        self.events = []
        self.failures = None
        self.warnings = []

    def rollback_start(self):
        self.events.append("rollback_start")

    def rollback_complete(self):
        self.events.append("rollback_complete")

    def rollback_warning(self, failures):
        self.events.append("rollback_warning")
        self.failures = list(failures)

    def abort_detected(self):
        self.events.append("abort_detected")

    def force_exit(self):
        self.events.append("force_exit")

    def warning(self, message):
        self.events.append("warning")
        self.warnings.append(message)

    def step(self, message):
        self.events.append(f"step:{message}")


class FakeApiClient:
    """Serves canned payloads through the real response parsers."""

    def __init__(self, schema_payload, snapshot_payloads):
        self.schema_payload = schema_payload
        self.snapshot_payloads = snapshot_payloads
        self.keys = []

    def get_schema(self, key):
        self.keys.append(key)
        return RemoteSchema.from_api(self.schema_payload)

    def list_snapshots(self, key):
        self.keys.append(key)
        return [SchemaSnapshot.from_api(p) for p in self.snapshot_payloads]


def make_table(table_id, name, columns=None, constraints=None):
    """A valid table with a serial primary key unless columns / constraints are given."""
    if columns is None:
        columns = [make_column(1, "id", "serial", constraints={"nullable": False})]
    if constraints is None:
        constraints = [{"id": 1, "name": f"{name}_pkey", "type": "primary_key", "columns": ["id"]}]
    return {"id": table_id, "name": name, "columns": columns, "constraints": constraints}


def make_column(column_id, name, column_type="text", **extra):
    return {"id": column_id, "name": name, "type": column_type, **extra}


def make_snapshot_payload(
    snapshot_id,
    label,
    created_at,
    parent_id=None,
    description=None,
    tables=None,
    status="done",
):
    return {
        "id": snapshot_id,
        "schemaId": SCHEMA_ID,
        "parentId": parent_id,
        "label": label,
        "description": description,
        "status": status,
        "contentHash": compute_content_hash(ENGINE_KEY_POSTGRESQL_15_0, description, tables),
        "engine": "postgresql",
        "engineVersion": "v15.0",
        "engineKey": ENGINE_KEY_POSTGRESQL_15_0,
        "data": {"tables": tables} if tables is not None else None,
        "createdAt": created_at,
        "updatedAt": created_at,
    }


@pytest.fixture(autouse=True)
def reset_output():
    reset_output_options()
    printer.quiet = False
    yield
    reset_output_options()
    printer.quiet = False


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def schema_payload():
    return {
        "id": SCHEMA_ID,
        "projectId": PROJECT_ID,
        "name": "My Shop DB",
        "engine": "postgresql",
        "description": "Storefront database",
        "createdAt": "2024-01-10T09:00:00.000Z",
        "updatedAt": "2024-02-01T12:00:00.000Z",
    }


@pytest.fixture
def snapshot_payloads():
    return [
        make_snapshot_payload(
            SNAPSHOT_V1_ID,
            "v1.0.0",
            "2024-01-15T10:30:00.000Z",
            description="Initial",
            tables=[make_table(1, "users")],
        ),
        make_snapshot_payload(
            SNAPSHOT_V2_ID,
            "v1.1.0",
            "2024-02-01T08:00:00.000Z",
            parent_id=SNAPSHOT_V1_ID,
            tables=[make_table(1, "users"), make_table(2, "orders")],
        ),
    ]


@pytest.fixture
def remote_schema(schema_payload):
    return RemoteSchema.from_api(schema_payload)


@pytest.fixture
def snapshots(snapshot_payloads):
    return [SchemaSnapshot.from_api(p) for p in snapshot_payloads]


@pytest.fixture
def fake_api(schema_payload, snapshot_payloads):
    return FakeApiClient(schema_payload, snapshot_payloads)
