"""
Voice session configuration.

Loads relay settings from environment variables.
"""
import os
from dataclasses import dataclass
from typing import Optional


def _parse_float_env(key: str, default: float) -> float:
    """Parse a float environment variable, ignoring trailing comments."""
    value = os.environ.get(key)
    if not value:
        return default
    value = value.split("#")[0].strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass
class RelayConfig:
    """Voice session relay configuration."""

    # Base URL of the patent service, e.g. http://127.0.0.1:3000
    # Only needed when the relay runs outside the service process.
    function_service_url: Optional[str] = None
    function_timeout_seconds: float = 10.0

    # Persona scenario (voice_session/scenarios/<name>.yaml)
    scenario: str = "default"

    @classmethod
    def from_env(cls) -> "RelayConfig":
        """Load configuration from environment variables."""
        url = os.environ.get("FUNCTION_SERVICE_URL")
        return cls(
            function_service_url=url.rstrip("/") if url else None,
            function_timeout_seconds=_parse_float_env("FUNCTION_TIMEOUT_SECONDS", default=10.0),
            scenario=os.environ.get("ASSISTANT_SCENARIO", "default"),
        )
