"""
Patent service configuration.

Loads from environment variables with sensible defaults. For local
development, ``.env_local`` / ``.env.local`` in the project root are loaded
first without overriding variables that are already set.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


DEFAULT_REALTIME_MODEL = "gpt-4o-realtime-preview-2024-12-17"
DEFAULT_REALTIME_VOICE = "verse"
DEFAULT_DUPLICATE_WINDOW_MS = 2000


def load_local_env(root: Optional[Path] = None) -> None:
    """Best-effort load of local env files; never overrides existing vars."""
    root = root or Path(__file__).parent.parent
    for name in (".env_local", ".env.local"):
        p = root / name
        if p.exists():
            load_dotenv(p, override=False)


def _parse_int_env(key: str, default: int) -> int:
    """
    Parse integer environment variable, stripping comments and whitespace.

    Handles cases like:
    - "2000  # comment" -> 2000
    - "2000" -> 2000
    - unset, empty or garbage -> default
    """
    value = os.environ.get(key)
    if not value:
        return default

    if "#" in value:
        value = value.split("#")[0]

    value = value.strip()
    if not value:
        return default

    try:
        return int(value)
    except ValueError:
        return default


@dataclass
class ServiceConfig:
    """Patent service configuration."""

    # Where session documents live: <patents_dir>/<session_id>/main.md
    patents_dir: Path = Path("patents")

    # Realtime session minting (/token); optional, only that endpoint needs it
    openai_api_key: Optional[str] = None
    realtime_model: str = DEFAULT_REALTIME_MODEL
    realtime_voice: str = DEFAULT_REALTIME_VOICE
    realtime_sessions_url: str = "https://api.openai.com/v1/realtime/sessions"

    # Duplicate ledger window for side-effect-creating functions
    duplicate_window_ms: int = DEFAULT_DUPLICATE_WINDOW_MS

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "ServiceConfig":
        """Load configuration from environment variables."""
        return cls(
            patents_dir=Path(os.environ.get("PATENTS_DIR", "patents")),
            openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
            realtime_model=os.environ.get("REALTIME_MODEL", DEFAULT_REALTIME_MODEL),
            realtime_voice=os.environ.get("REALTIME_VOICE", DEFAULT_REALTIME_VOICE),
            realtime_sessions_url=os.environ.get(
                "REALTIME_SESSIONS_URL", "https://api.openai.com/v1/realtime/sessions"
            ),
            duplicate_window_ms=_parse_int_env("DUPLICATE_WINDOW_MS", default=DEFAULT_DUPLICATE_WINDOW_MS),
            host=os.environ.get("HOST", "0.0.0.0"),
            port=_parse_int_env("PORT", default=3000),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )


def get_config() -> ServiceConfig:
    """Get or create global config instance."""
    global _config
    if _config is None:
        load_local_env()
        _config = ServiceConfig.from_env()
    return _config


# Global config instance (lazy loaded)
_config: Optional[ServiceConfig] = None
