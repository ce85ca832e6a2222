"""Exception classes for process spawning and lifecycle tracking.

Raw creation errors (``FileNotFoundError``, ``PermissionError``, ...) are not
wrapped; they propagate exactly as the process-creation primitive raised them.
"""

from __future__ import annotations

__all__ = [
    "SpawnError",
    "AlreadySpawnedError",
    "EmptyCommandError",
    "NotYetSpawnedError",
    "ProcessTerminationError",
    "KilledWithSignalError",
    "ExitedWithExitCodeError",
    "MalformedTerminationError",
]


class SpawnError(Exception):
    """Base exception for spawnable."""
    pass


class AlreadySpawnedError(SpawnError):
    """spawn() called more than once on the same Spawnable."""

    def __init__(self) -> None:
        super().__init__("Process has already been spawned.")


class EmptyCommandError(SpawnError):
    """The command is empty or its executable name is empty."""

    def __init__(self) -> None:
        super().__init__("The provided command is empty.")


class NotYetSpawnedError(SpawnError):
    """A lifecycle operation was requested before spawn() succeeded."""

    def __init__(self) -> None:
        super().__init__("Process has not been spawned yet.")


class ProcessTerminationError(SpawnError):
    """Process terminated without a clean zero exit.

    Attributes:
        code: Exit code, if the termination carried one
        signal: Signal name, if the termination carried one
    """

    def __init__(
        self,
        message: str,
        code: int | None = None,
        signal: str | None = None,
    ) -> None:
        self.code = code
        self.signal = signal
        super().__init__(message)


class KilledWithSignalError(ProcessTerminationError):
    """Process was terminated by a signal.

    Attributes:
        signal: Signal name, e.g. ``"SIGKILL"``
    """

    def __init__(self, signal: str) -> None:
        super().__init__(f"Process killed with signal {signal}", signal=signal)


class ExitedWithExitCodeError(ProcessTerminationError):
    """Process exited on its own with a non-zero code.

    Attributes:
        code: The exit code
    """

    def __init__(self, code: int) -> None:
        super().__init__(f"Process exited with code {code}", code=code)


class MalformedTerminationError(ProcessTerminationError):
    """Termination notification carried neither an exit code nor a signal."""

    def __init__(self) -> None:
        super().__init__("Process terminated without an exit code or a signal.")
