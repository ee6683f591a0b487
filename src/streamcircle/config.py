"""Environment configuration loaded from .env, env vars, or programmatic input."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from dotenv import load_dotenv

DEFAULT_PORT = 4000
DEFAULT_DB_DIR = Path.home() / ".streamcircle"


def default_database_url() -> str:
    """Build default SQLite URL next to the user's home."""
    return f"sqlite+aiosqlite:///{DEFAULT_DB_DIR / 'streamcircle.db'}"


def _strip_url(raw: str | None) -> str | None:
    """Drop trailing slashes so paths can be appended with a single '/'."""
    if not raw:
        return None
    return raw.rstrip("/")


def _is_http_url(raw: str) -> bool:
    parsed = urlparse(raw)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _parse_origins(raw: str) -> list[str]:
    """Parse a comma separated CORS origin list."""
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


@dataclass
class Config:
    """Server configuration. Can be built from env, CLI args, or programmatic input."""

    admin_token: str = ""
    stream_host: str = ""
    stream_app: str = "live"
    playback_base_url: str | None = None
    database_url: str = field(default_factory=default_database_url)
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    def __post_init__(self):
        """Normalize URL fields."""
        self.stream_host = _strip_url(self.stream_host) or ""
        self.playback_base_url = _strip_url(self.playback_base_url)

    @property
    def hls_base_url(self) -> str:
        """Base URL under which the media server publishes HLS playlists."""
        return f"{self.stream_host}/hls"

    @classmethod
    def from_env(cls) -> Config:
        """Load config from environment variables and .env file."""
        load_dotenv()
        return cls(
            admin_token=os.getenv("SERVER_ADMIN_TOKEN", ""),
            stream_host=os.getenv("STREAM_HOST", ""),
            stream_app=os.getenv("STREAM_APP", "live"),
            playback_base_url=os.getenv("PLAYBACK_BASE_URL"),
            database_url=os.getenv("DATABASE_URL") or default_database_url(),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", str(DEFAULT_PORT))),
            cors_origins=_parse_origins(os.getenv("CORS_ORIGINS", "*")),
        )

    @classmethod
    def from_args(
        cls,
        host: str | None = None,
        port: int | None = None,
        database_url: str | None = None,
    ) -> Config:
        """Build config from explicit arguments, falling back to env."""
        env = cls.from_env()
        return cls(
            admin_token=env.admin_token,
            stream_host=env.stream_host,
            stream_app=env.stream_app,
            playback_base_url=env.playback_base_url,
            database_url=database_url or env.database_url,
            host=host or env.host,
            port=port if port is not None else env.port,
            cors_origins=env.cors_origins,
        )

    def validate(self) -> list[str]:
        """Return list of validation errors, empty if config is valid."""
        errors = []
        if not self.admin_token:
            errors.append(
                "SERVER_ADMIN_TOKEN is not set. "
                "Set SERVER_ADMIN_TOKEN in env/.env."
            )
        if not self.stream_host:
            errors.append(
                "STREAM_HOST is not set. "
                "Set STREAM_HOST to the media server's public URL."
            )
        elif not _is_http_url(self.stream_host):
            errors.append(f"STREAM_HOST is not a valid URL: {self.stream_host!r}")
        if self.playback_base_url and not _is_http_url(self.playback_base_url):
            errors.append(
                f"PLAYBACK_BASE_URL is not a valid URL: {self.playback_base_url!r}"
            )
        if not 0 < self.port < 65536:
            errors.append(f"PORT out of range: {self.port}")
        return errors
