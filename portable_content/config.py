"""Centralised settings for the portable-content store adapter.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

Settings are *not* a module-level singleton: every entry-point (CLI, API,
test) builds its own instance via :func:`load_settings` and passes it on
explicitly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from portable_content.exceptions import ConfigurationError

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

BACKENDS = ("local", "weaviate")


def _env_int(name: str, default: str) -> int:
    raw = os.environ.get(name, default)
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: str) -> float:
    raw = os.environ.get(name, default)
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Backend selection / local workspace
    # ------------------------------------------------------------------
    store_backend: str = field(
        default_factory=lambda: os.environ.get("CONTENT_STORE_BACKEND", "local")
    )
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("CONTENT_WORKSPACE", Path.home() / ".portable_content")
        )
    )
    class_name: str = field(
        default_factory=lambda: os.environ.get("CONTENT_CLASS_NAME", "ContentItem")
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite file used by the local store."""
        return self.workspace_dir / "content.db"

    # ------------------------------------------------------------------
    # Weaviate
    # ------------------------------------------------------------------
    weaviate_host: str = field(
        default_factory=lambda: os.environ.get("WEAVIATE_HOST", "localhost")
    )
    weaviate_port: int = field(default_factory=lambda: _env_int("WEAVIATE_PORT", "8080"))
    weaviate_scheme: str = field(
        default_factory=lambda: os.environ.get("WEAVIATE_SCHEME", "http")
    )
    weaviate_api_key: str = field(
        default_factory=lambda: os.environ.get("WEAVIATE_API_KEY", "")
    )
    request_timeout: float = field(
        default_factory=lambda: _env_float("WEAVIATE_TIMEOUT", "10.0")
    )

    @property
    def weaviate_base_url(self) -> str:
        return f"{self.weaviate_scheme}://{self.weaviate_host}:{self.weaviate_port}"

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(default_factory=lambda: os.environ.get("LOG_LEVEL", "WARNING"))

    def __post_init__(self) -> None:
        if self.store_backend not in BACKENDS:
            raise ConfigurationError(
                f"unknown store backend {self.store_backend!r} "
                f"(expected one of: {', '.join(BACKENDS)})"
            )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


def load_settings(**overrides) -> Settings:
    """Build a fresh :class:`Settings` from the environment plus *overrides*."""
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


def configure_logging(settings: Settings) -> None:
    """Configure root logging once at process entry."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
