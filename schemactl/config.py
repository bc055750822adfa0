"""
Runtime settings for schemactl.

Settings come from the environment:
- SCHEMACTL_API_URL: base URL of the schema API
- SCHEMACTL_API_TIMEOUT: request timeout in seconds
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from schemactl.errors import ConfigError

DEFAULT_API_URL = "https://api.schemactl.dev"
DEFAULT_API_TIMEOUT = 10.0


@dataclass(frozen=True)
class Settings:
    """Resolved runtime settings."""
    api_url: str = DEFAULT_API_URL
    api_timeout: float = DEFAULT_API_TIMEOUT

    def __post_init__(self):
        if not self.api_url.startswith(("http://", "https://")):
            raise ConfigError(f"SCHEMACTL_API_URL must be an http(s) URL: {self.api_url}")
        if self.api_timeout <= 0:
            raise ConfigError("SCHEMACTL_API_TIMEOUT must be positive")

    def __repr__(self) -> str:
        return f"Settings(api_url={self.api_url}, api_timeout={self.api_timeout})"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Load runtime settings from environment variables.

    Args:
        environ: Environment mapping. Defaults to os.environ

    Returns:
        Settings instance

    Raises:
        ConfigError: If a variable is set to an invalid value
    """
    env = os.environ if environ is None else environ

    api_url = env.get("SCHEMACTL_API_URL", "").strip() or DEFAULT_API_URL
    raw_timeout = env.get("SCHEMACTL_API_TIMEOUT", "").strip()
    try:
        api_timeout = float(raw_timeout) if raw_timeout else DEFAULT_API_TIMEOUT
    except ValueError:
        raise ConfigError(f"SCHEMACTL_API_TIMEOUT must be a number, got {raw_timeout!r}") from None

    return Settings(api_url=api_url.rstrip("/"), api_timeout=api_timeout)
