"""spawnable environment configuration.

Environment variables:
    SPAWNABLE_KILL_SIGNAL: default signal sent by kill()
        - signal name, e.g. SIGINT / SIGTERM / SIGKILL (default SIGINT)
        - case-insensitive, the "SIG" prefix may be omitted
        - unknown names fall back to the default

    SPAWNABLE_TERM_TIMEOUT: seconds terminate() waits after SIGTERM
        - default 2.0, clamped to 0.1-60

    SPAWNABLE_KILL_TIMEOUT: seconds terminate() waits after SIGKILL
        - default 1.0, clamped to 0.1-60

    SPAWNABLE_NEW_SESSION: start children in a new session / process group
        - true/1/yes = on (terminal Ctrl+C is not forwarded to the child)
        - false/0/no = off (default)

    SPAWNABLE_LOG_DEBUG: command-line runner logs to a debug file
        - true/1/yes = on (DEBUG level, file under the temp directory)
        - false/0/no = off (default, INFO level to stderr)
"""

from __future__ import annotations

import os
import signal
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

__all__ = [
    "Config",
    "load_config",
    "get_config",
    "reload_config",
    "parse_signal_name",
]

DEFAULT_KILL_SIGNAL = "SIGINT"
DEFAULT_TERM_TIMEOUT = 2.0  # seconds to wait after SIGTERM
DEFAULT_KILL_TIMEOUT = 1.0  # seconds to wait after SIGKILL


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_timeout(value: str | None, default: float) -> float:
    """Parse a timeout environment variable, clamped to 0.1-60 seconds."""
    if not value:
        return default
    try:
        timeout = float(value)
    except ValueError:
        return default
    return max(0.1, min(timeout, 60.0))


def parse_signal_name(value: str) -> str | None:
    """Normalize a signal name.

    Args:
        value: Name such as "sigterm", "TERM" or "SIGTERM"

    Returns:
        Canonical name ("SIGTERM"), or None if the platform has no such signal
    """
    name = value.strip().upper()
    if not name:
        return None
    if not name.startswith("SIG"):
        name = f"SIG{name}"
    if name not in signal.Signals.__members__:
        return None
    return name


@dataclass
class Config:
    """spawnable configuration.

    Attributes:
        kill_signal: Default signal name for kill()
        term_timeout: Seconds to wait after SIGTERM in terminate()
        kill_timeout: Seconds to wait after SIGKILL in terminate()
        new_session: Start children in a new session / process group
        log_debug: Command-line runner logs to a debug file
        log_file: Debug log path (set when log_debug=True)
    """

    kill_signal: str = DEFAULT_KILL_SIGNAL
    term_timeout: float = DEFAULT_TERM_TIMEOUT
    kill_timeout: float = DEFAULT_KILL_TIMEOUT
    new_session: bool = False
    log_debug: bool = False
    log_file: str | None = None


def _generate_log_file_path() -> str:
    """Build a timestamped debug log path under the temp directory."""
    log_dir = Path(tempfile.gettempdir()) / "spawnable"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"spawnable_debug_{timestamp}.log"

    return str(log_file.resolve())


def load_config() -> Config:
    """Load configuration from the environment."""
    log_debug = _parse_bool(os.environ.get("SPAWNABLE_LOG_DEBUG"), default=False)
    log_file = _generate_log_file_path() if log_debug else None

    kill_signal = parse_signal_name(os.environ.get("SPAWNABLE_KILL_SIGNAL", ""))

    return Config(
        kill_signal=kill_signal or DEFAULT_KILL_SIGNAL,
        term_timeout=_parse_timeout(
            os.environ.get("SPAWNABLE_TERM_TIMEOUT"), DEFAULT_TERM_TIMEOUT
        ),
        kill_timeout=_parse_timeout(
            os.environ.get("SPAWNABLE_KILL_TIMEOUT"), DEFAULT_KILL_TIMEOUT
        ),
        new_session=_parse_bool(os.environ.get("SPAWNABLE_NEW_SESSION"), default=False),
        log_debug=log_debug,
        log_file=log_file,
    )


# Global config instance (lazy)
_config: Config | None = None


def get_config() -> Config:
    """Return the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload configuration from the environment (used by tests)."""
    global _config
    _config = load_config()
    return _config
