"""
Remote schema API client.

Two read-only endpoints, both authenticated with the schema API key:
- GET /schema            -> the schema the key belongs to
- GET /schema/snapshots  -> all snapshots of that schema
"""

import logging
from typing import Any, Callable, Optional

import httpx

from schemactl.config import Settings, load_settings
from schemactl.errors import CliError, ErrorCode, SchemaValidationError
from schemactl.schemas import RemoteSchema, SchemaSnapshot

logger = logging.getLogger(__name__)

SCHEMA_PATH = "/schema"
SNAPSHOTS_PATH = "/schema/snapshots"


class ApiClient:
    """
    Synchronous client for the schema API.

    Args:
        settings: Runtime settings (base URL, timeout). Loaded from the
            environment when omitted
        transport: Optional httpx transport, used by tests to serve
            canned responses
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.settings = settings or load_settings()
        self._transport = transport

    def get_schema(self, key: str) -> RemoteSchema:
        """
        Fetch the schema associated with an API key.

        Raises:
            CliError: On network failure, non-2xx status or an invalid payload
        """
        payload = self._get(SCHEMA_PATH, key, "Schema")
        return self._parse(payload, RemoteSchema.from_api, "schema")

    def list_snapshots(self, key: str) -> list[SchemaSnapshot]:
        """
        Fetch every snapshot of the schema associated with an API key.

        Raises:
            CliError: On network failure, non-2xx status or an invalid payload
        """
        payload = self._get(SNAPSHOTS_PATH, key, "Snapshots")

        def parse_list(data: Any) -> list[SchemaSnapshot]:
            if not isinstance(data, list):
                raise SchemaValidationError("snapshots: expected a list")
            return [SchemaSnapshot.from_api(item) for item in data]

        return self._parse(payload, parse_list, "snapshot")

    def _get(self, path: str, key: str, resource: str) -> Any:
        url = f"{self.settings.api_url}{path}"
        headers = {
            "Authorization": f"Bearer {key}",
            "Accept": "application/json",
        }
        timeout = self.settings.api_timeout

        logger.debug(f"GET {url}")
        try:
            with httpx.Client(timeout=timeout, transport=self._transport) as client:
                resp = client.get(url, headers=headers)
        except httpx.TimeoutException as e:
            raise CliError(
                "Request Timed Out",
                f"Request timed out after {timeout:g} seconds",
                code=ErrorCode.NETWORK_ERROR,
                suggestions=["Check your network connection or try again later."],
                cause=e,
            ) from e
        except httpx.TransportError as e:
            raise CliError(
                "Network Error",
                "Could not connect to the API",
                code=ErrorCode.NETWORK_ERROR,
                suggestions=["Check your internet connection."],
                cause=e,
            ) from e

        logger.debug(f"GET {url} -> {resp.status_code}")
        if not resp.is_success:
            raise CliError(
                f"{resp.status_code}: Failed to Fetch {resource}",
                f"Failed to fetch {resource.lower()} associated with provided API key.",
            )

        try:
            return resp.json()
        except ValueError as e:
            raise CliError(
                "Invalid API Response",
                f"Received a non-JSON {resource.lower()} response from API",
                cause=e,
            ) from e

    @staticmethod
    def _parse(payload: Any, parse: Callable[[Any], Any], label: str) -> Any:
        try:
            return parse(payload)
        except SchemaValidationError as e:
            raise CliError(
                "Invalid API Response",
                f"Received invalid {label} data from API",
                hints=[str(e)],
                cause=e,
            ) from e
