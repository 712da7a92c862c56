"""Configuration for the northbase client.

The remote service address and key are fixed. The local configuration
directory, debug verbosity and pull concurrency come from the environment
(optionally via a ``.env`` file) and can be overridden by CLI options.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

SUPABASE_URL = "https://ivxgpjracfctkkdhlwgm.supabase.co"
SUPABASE_KEY = "sb_publishable_LZkkAwsx9q5KgIAeoZAO_A_U88rfFHL"

DEFAULT_HOME = Path.home() / ".northbase"
DEFAULT_CONCURRENCY = 4

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Resolved local settings."""

    home: Path = DEFAULT_HOME
    debug: bool = False
    concurrency: int = DEFAULT_CONCURRENCY

    @property
    def files_dir(self) -> Path:
        return self.home / "files"

    @property
    def index_path(self) -> Path:
        return self.home / "index.json"

    @property
    def session_path(self) -> Path:
        return self.home / "session.json"


def _env_concurrency() -> int:
    raw = os.getenv("NORTHBASE_CONCURRENCY")
    if not raw:
        return DEFAULT_CONCURRENCY
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value < 1:
        logger.warning(f"Ignoring invalid NORTHBASE_CONCURRENCY={raw!r}")
        return DEFAULT_CONCURRENCY
    return value


def get_settings(
    home: Path | str | None = None,
    debug: bool | None = None,
    concurrency: int | None = None,
) -> Settings:
    """Resolve settings from arguments, then the environment, then defaults."""
    load_dotenv(find_dotenv(usecwd=True))

    if home is None:
        env_home = os.getenv("NORTHBASE_HOME")
        home = Path(env_home).expanduser() if env_home else DEFAULT_HOME
    if debug is None:
        debug = os.getenv("NORTHBASE_DEBUG", "").strip().lower() in _TRUTHY
    if concurrency is None:
        concurrency = _env_concurrency()

    return Settings(home=Path(home), debug=debug, concurrency=concurrency)
