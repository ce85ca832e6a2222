"""Pytest configuration and fixtures."""

from __future__ import annotations

import signal
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Add src to the Python path
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

FIXTURES_DIR = PROJECT_ROOT / "tests" / "fixtures"
FAKE_CHILD_PATH = FIXTURES_DIR / "fake_child.py"

IS_WINDOWS = sys.platform == "win32"

_CONFIG_ENV_VARS = (
    "SPAWNABLE_KILL_SIGNAL",
    "SPAWNABLE_TERM_TIMEOUT",
    "SPAWNABLE_KILL_TIMEOUT",
    "SPAWNABLE_NEW_SESSION",
    "SPAWNABLE_LOG_DEBUG",
)


class FakeChildProcess:
    """In-memory process handle whose notifications are fired by the test.

    Exactly the ProcessHandle surface that Spawned consumes: pid, on() and
    kill(). kill() only records the signal.
    """

    def __init__(self, pid: int | None = None) -> None:
        self.pid = pid
        self.killed_with: list[Any] = []
        self.kill_result = True
        self._listeners: dict[str, list[Callable[..., None]]] = {
            "spawn": [],
            "error": [],
            "exit": [],
            "close": [],
        }

    def on(self, event: str, callback: Callable[..., None]) -> None:
        self._listeners[event].append(callback)

    def listener_count(self, event: str) -> int:
        return len(self._listeners[event])

    def kill(self, sig: Any = signal.SIGTERM) -> bool:
        self.killed_with.append(sig)
        return self.kill_result

    def emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners[event]):
            callback(*args)

    # Convenience helpers

    def fire_spawn(self, pid: int = 4242) -> None:
        self.pid = pid
        self.emit("spawn")

    def fire_error(self, error: BaseException) -> None:
        self.emit("error", error)

    def fire_exit(self, code: int | None, sig: str | None = None) -> None:
        self.emit("exit", code, sig)

    def fire_close(self, code: int | None, sig: str | None = None) -> None:
        self.emit("close", code, sig)


@pytest.fixture
def fake_handle() -> FakeChildProcess:
    """A handle that has not spawned yet."""
    return FakeChildProcess()


@pytest.fixture
def fake_child_path() -> Path:
    """Path of the fake child script."""
    return FAKE_CHILD_PATH


@pytest.fixture
def python_cmd() -> Callable[..., list[str]]:
    """Build an argv running the fake child with the current interpreter."""

    def build(*args: str) -> list[str]:
        return [sys.executable, str(FAKE_CHILD_PATH), *args]

    return build


@pytest.fixture(autouse=True)
def clean_config(monkeypatch: pytest.MonkeyPatch):
    """Start every test from the default configuration."""
    from spawnable.config import reload_config

    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reload_config()
    yield
    reload_config()
