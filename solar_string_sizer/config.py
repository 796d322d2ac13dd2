from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict

DEFAULT_HISTORY_LIMIT = 20
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _load_dotenv(path: str = ".env") -> Dict[str, str]:
    """
    Minimal .env reader that fills os.environ without overriding existing values.
    Returns a mapping of parsed key/value pairs.
    """
    env_path = Path(path)
    if not env_path.exists():
        return {}

    parsed: Dict[str, str] = {}
    for line in env_path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        os.environ.setdefault(key, value)
        parsed[key] = value
    return parsed


_load_dotenv()


def get_database_url() -> str:
    """
    Determine the SQLAlchemy database URL for the history and catalog store.

    Returns:
        ``SOLAR_SIZER_POSTGRES_DSN`` when set, otherwise a SQLite URL for
        ``SOLAR_SIZER_DB_PATH`` (default ``string_sizer.db`` in the cwd).
    """
    dsn = os.getenv("SOLAR_SIZER_POSTGRES_DSN")
    if dsn:
        return dsn

    db_path = Path(os.getenv("SOLAR_SIZER_DB_PATH", "string_sizer.db")).expanduser()
    if not db_path.is_absolute():
        db_path = Path.cwd() / db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite+pysqlite:///{db_path}"


def get_history_limit() -> int:
    """Number of sizing runs kept in the history store (at least 1)."""
    raw = os.getenv("SOLAR_SIZER_HISTORY_LIMIT")
    if not raw:
        return DEFAULT_HISTORY_LIMIT
    try:
        return max(1, int(raw))
    except ValueError:
        logging.getLogger(__name__).warning(
            "Ignoring invalid SOLAR_SIZER_HISTORY_LIMIT=%r, using %d", raw, DEFAULT_HISTORY_LIMIT
        )
        return DEFAULT_HISTORY_LIMIT


def get_report_dir() -> Path:
    """Directory where PDF reports are written."""
    return Path(os.getenv("SOLAR_SIZER_REPORT_DIR", "reports")).expanduser()


def configure_logging(level: str | int | None = None) -> None:
    """
    Configure root logging for CLI and API entry points.

    Args:
        level: Explicit level; falls back to ``SOLAR_SIZER_LOG_LEVEL`` then INFO.
    """
    if level is None:
        level = os.getenv("SOLAR_SIZER_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
