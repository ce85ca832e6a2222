"""spawnable - await the lifecycle of an external process.

Spawnable creates a process once; Spawned tracks it and exposes two
memoizing completions (started, exited) plus point-in-time status queries.

Environment variables:
    SPAWNABLE_KILL_SIGNAL: default signal for kill() (default SIGINT)
    SPAWNABLE_TERM_TIMEOUT: seconds terminate() waits after SIGTERM (default 2.0)
    SPAWNABLE_KILL_TIMEOUT: seconds terminate() waits after SIGKILL (default 1.0)
    SPAWNABLE_NEW_SESSION: start children in a new session (default false)

Usage:
    proc = Spawnable(["make", "test"])
    await proc.spawn()
    await proc.wait_for_exit()
"""

__version__ = "0.1.0"

from .errors import (
    AlreadySpawnedError,
    EmptyCommandError,
    ExitedWithExitCodeError,
    KilledWithSignalError,
    MalformedTerminationError,
    NotYetSpawnedError,
    ProcessTerminationError,
    SpawnError,
)
from .spawnable import Spawnable
from .spawned import Spawned

__all__ = [
    "__version__",
    "Spawnable",
    "Spawned",
    "SpawnError",
    "AlreadySpawnedError",
    "EmptyCommandError",
    "NotYetSpawnedError",
    "ProcessTerminationError",
    "KilledWithSignalError",
    "ExitedWithExitCodeError",
    "MalformedTerminationError",
]
