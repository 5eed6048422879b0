"""Configuration management via .env file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from folio.cache.document_cache import DEFAULT_CAPACITY

log = logging.getLogger(__name__)


def _xdg_data_home() -> Path:
    return Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))


def _xdg_config_home() -> Path:
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


@dataclass
class AppConfig:
    # Paths
    data_dir: Path = field(default_factory=lambda: _xdg_data_home() / "folio")
    config_dir: Path = field(default_factory=lambda: _xdg_config_home() / "folio")
    db_path: Path = field(init=False)
    log_path: Path = field(init=False)

    # Parsed documents kept in memory
    cache_capacity: int = DEFAULT_CAPACITY

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.data_dir = Path(self.data_dir)
        self.config_dir = Path(self.config_dir)
        self.db_path = self.data_dir / "library.db"
        self.log_path = self.data_dir / "folio.log"
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.config_dir.mkdir(parents=True, exist_ok=True)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        log.warning("Ignoring non-integer %s=%r", name, raw)
        return default
    if value < 1:
        log.warning("Ignoring %s=%d, must be at least 1", name, value)
        return default
    return value


def load_config(env_path: Optional[Path] = None) -> AppConfig:
    """Load config from .env file. Searches CWD then config dir."""
    search_paths = [
        env_path,
        Path.cwd() / ".env",
        _xdg_config_home() / "folio" / ".env",
        Path.home() / ".env",
    ]
    for p in search_paths:
        if p and p.exists():
            load_dotenv(p)
            break

    kwargs: dict = {
        "cache_capacity": _env_int("FOLIO_CACHE_CAPACITY", DEFAULT_CAPACITY),
        "log_level": os.getenv("FOLIO_LOG_LEVEL", "INFO").upper(),
    }
    if os.getenv("FOLIO_DATA_DIR"):
        kwargs["data_dir"] = Path(os.environ["FOLIO_DATA_DIR"]).expanduser()
    if os.getenv("FOLIO_CONFIG_DIR"):
        kwargs["config_dir"] = Path(os.environ["FOLIO_CONFIG_DIR"]).expanduser()
    return AppConfig(**kwargs)
