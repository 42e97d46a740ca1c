"""Environment configuration for ticketboard."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

# Checked in order; first non-empty value wins.
DATABASE_URL_VARIABLES = ("DATABASE_URL", "POSTGRES_URL", "PRISMA_DATABASE_URL")

DEFAULT_API_URL = "http://localhost:8000/api/v1"
DEFAULT_API_TIMEOUT = 30.0
DEFAULT_CACHE_DIR = ".ticketboard"


class ConfigError(Exception):
    """Raised when configuration is invalid."""


@dataclass
class Settings:
    """Resolved runtime settings.

    Attributes:
        database_url: SQLAlchemy URL for the server, or None for fallback mode.
        api_url: Base URL of the ticket API used by the client, or None to
            run the client against the local store only.
        api_timeout: Client request timeout in seconds.
        cache_dir: Directory of the local fallback store.
    """

    database_url: str | None = None
    api_url: str | None = DEFAULT_API_URL
    api_timeout: float = DEFAULT_API_TIMEOUT
    cache_dir: Path = Path(DEFAULT_CACHE_DIR)

    @property
    def has_database(self) -> bool:
        """Whether a database connection string is configured."""
        return self.database_url is not None


def resolve_database_url(environ: Mapping[str, str] | None = None) -> str | None:
    """Return the first configured database URL, or None.

    Args:
        environ: Environment mapping (defaults to os.environ).

    Returns:
        The normalized URL, or None when none of the variables is set.
    """
    env = os.environ if environ is None else environ
    for name in DATABASE_URL_VARIABLES:
        value = env.get(name, "").strip()
        if value:
            return normalize_database_url(value)
    return None


def normalize_database_url(url: str) -> str:
    """Map hosted-Postgres style URLs onto the SQLAlchemy psycopg2 dialect."""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg2://" + url[len(prefix) :]
    return url


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Load settings from the environment.

    Args:
        environ: Environment mapping (defaults to os.environ).

    Returns:
        Settings instance.

    Raises:
        ConfigError: If a value cannot be parsed.
    """
    env = os.environ if environ is None else environ

    api_url: str | None = env.get("TICKETBOARD_API_URL", DEFAULT_API_URL).strip()
    if not api_url:
        api_url = None
    elif not api_url.startswith(("http://", "https://")):
        raise ConfigError(f"TICKETBOARD_API_URL must be an http(s) URL, got '{api_url}'")
    else:
        api_url = api_url.rstrip("/")

    raw_timeout = env.get("TICKETBOARD_API_TIMEOUT", str(DEFAULT_API_TIMEOUT))
    try:
        api_timeout = float(raw_timeout)
    except ValueError as e:
        raise ConfigError(f"TICKETBOARD_API_TIMEOUT must be a number, got '{raw_timeout}'") from e
    if api_timeout <= 0:
        raise ConfigError("TICKETBOARD_API_TIMEOUT must be positive")

    return Settings(
        database_url=resolve_database_url(env),
        api_url=api_url,
        api_timeout=api_timeout,
        cache_dir=Path(env.get("TICKETBOARD_CACHE_DIR", DEFAULT_CACHE_DIR)),
    )
