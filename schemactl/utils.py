"""
Utility functions for schemactl.

Includes logging setup and content hashing.
"""

import hashlib
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler


# Console for log output; user-facing messages go through schemactl.printer
console = Console(stderr=True)


def setup_logging(
    log_level: str = "WARNING",
    log_format: str = "pretty",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Set up logging for a CLI invocation.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: "structured" (JSON lines) or "pretty" (rich, human-readable)
        log_file: Optional file to mirror log records into

    Returns:
        Configured package logger
    """
    logger = logging.getLogger("schemactl")
    logger.setLevel(getattr(logging, log_level.upper()))
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []
    logger.propagate = False

    if log_format == "pretty":
        console_handler: logging.Handler = RichHandler(
            console=console, rich_tracebacks=True, show_time=False, show_path=False
        )
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(StructuredFormatter())
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def canonical_json(data: Any) -> str:
    """
    Serialize data to a canonical JSON string.

    Keys are sorted and separators are compact so equal content always
    yields identical bytes.

    Raises:
        TypeError: If data contains values that are not JSON-serializable
    """
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def compute_content_hash(
    engine_key: str,
    description: Optional[str],
    tables: Optional[list[dict[str, Any]]],
) -> str:
    """
    Compute the content hash of a snapshot.

    Only fields that are present take part in the hash:
    engineKey always, description when not None, tables when the
    snapshot carries data.

    Args:
        engine_key: Composite engine key (e.g. "postgresql:v15.0")
        description: Snapshot description or None
        tables: Table definitions or None when the snapshot has no data

    Returns:
        Hash string in the form "sha256:<hex>"
    """
    content: dict[str, Any] = {"engineKey": engine_key}
    if description is not None:
        content["description"] = description
    if tables is not None:
        content["tables"] = tables

    digest = hashlib.sha256(canonical_json(content).encode("utf-8")).hexdigest()
    return f"sha256:{digest}"
