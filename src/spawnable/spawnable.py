"""Spawn coordination: create a process exactly once and track it.

Spawnable owns an unstarted command and performs the create-and-track handoff
once. Its state is one of:

- Unstarted: no process yet; queries return False / None, lifecycle
  operations raise NotYetSpawnedError
- Started(spawned): every operation delegates to the Spawned tracker

The transition is one-way.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Optional, Union

from .errors import AlreadySpawnedError, EmptyCommandError, NotYetSpawnedError
from .runtime.child_process import ProcessHandle, SignalLike, spawn_process
from .spawned import Spawned

__all__ = ["Spawnable", "Unstarted", "Started"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Unstarted:
    """No process has been created yet."""


@dataclass(frozen=True)
class Started:
    """The process was created and is tracked by ``spawned``."""

    spawned: Spawned


SpawnState = Union[Unstarted, Started]


class Spawnable:
    """A command that can be spawned once and observed afterwards.

    Example:
        ```python
        proc = Spawnable(["sleep", "10"], {"cwd": "/tmp"})
        await proc.spawn()
        proc.kill("SIGKILL")
        try:
            await proc.wait_for_exit()
        except KilledWithSignalError as e:
            assert e.signal == "SIGKILL"
        ```

    Or scoped, terminating the process on the way out:
        ```python
        async with Spawnable(["my-server", "--port", "8080"]) as proc:
            await do_requests()
        ```

    Attributes:
        command: Executable followed by its arguments
        options: kwargs passed verbatim to asyncio.create_subprocess_exec
    """

    def __init__(
        self,
        command: Sequence[str],
        options: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.command = list(command)
        self.options = options
        self._state: SpawnState = Unstarted()

    @property
    def state(self) -> SpawnState:
        return self._state

    @property
    def spawned(self) -> Optional[Spawned]:
        """The tracker, or None before spawn()."""
        if isinstance(self._state, Started):
            return self._state.spawned
        return None

    def _require_spawned(self) -> Spawned:
        if isinstance(self._state, Started):
            return self._state.spawned
        raise NotYetSpawnedError()

    async def spawn(self) -> None:
        """Create the process and wait until it has started.

        Raises:
            AlreadySpawnedError: If spawn() was already called
            EmptyCommandError: If the command or its executable is empty
            The creation error (e.g. FileNotFoundError) if the process
            could not be started
        """
        if isinstance(self._state, Started):
            raise AlreadySpawnedError()

        if not self.command or not self.command[0]:
            raise EmptyCommandError()

        executable, *args = self.command
        if self.options:
            handle = spawn_process(executable, args, self.options)
        else:
            handle = spawn_process(executable, args)

        spawned = Spawned(handle)
        self._state = Started(spawned)
        logger.debug(f"Spawning argv={self.command}")

        await spawned.wait_for_start()

    # ------------------------------------------------------------------
    # Queries (never raise)
    # ------------------------------------------------------------------

    def has_started(self) -> bool:
        spawned = self.spawned
        return spawned is not None and spawned.has_started()

    def is_terminated(self) -> bool:
        spawned = self.spawned
        return spawned is not None and spawned.is_terminated()

    def was_killed(self) -> bool:
        spawned = self.spawned
        return spawned is not None and spawned.was_killed()

    def exited_successfully(self) -> bool:
        spawned = self.spawned
        return spawned is not None and spawned.exited_successfully()

    def exited_with_error(self) -> bool:
        spawned = self.spawned
        return spawned is not None and spawned.exited_with_error()

    @property
    def signal(self) -> Optional[str]:
        spawned = self.spawned
        return spawned.signal if spawned is not None else None

    @property
    def exit_code(self) -> Optional[int]:
        spawned = self.spawned
        return spawned.exit_code if spawned is not None else None

    @property
    def pid(self) -> Optional[int]:
        spawned = self.spawned
        return spawned.pid if spawned is not None else None

    @property
    def child_process(self) -> Optional[ProcessHandle]:
        """The raw process handle, or None before spawn()."""
        spawned = self.spawned
        return spawned.child_process if spawned is not None else None

    # ------------------------------------------------------------------
    # Lifecycle operations (raise NotYetSpawnedError before spawn())
    # ------------------------------------------------------------------

    def kill(self, signal: Optional[SignalLike] = None) -> bool:
        """Send a signal to the process (default SIGINT).

        Raises:
            NotYetSpawnedError: If spawn() has not been called
        """
        return self._require_spawned().kill(signal)

    async def wait_for_start(self) -> None:
        """Wait until the process has started.

        Raises:
            NotYetSpawnedError: If spawn() has not been called
        """
        await self._require_spawned().wait_for_start()

    async def wait_for_exit(self) -> None:
        """Wait until the process has exited successfully.

        Raises:
            NotYetSpawnedError: If spawn() has not been called
            KilledWithSignalError / ExitedWithExitCodeError /
            MalformedTerminationError: See Spawned.wait_for_exit()
        """
        await self._require_spawned().wait_for_exit()

    async def terminate(
        self,
        term_timeout: Optional[float] = None,
        kill_timeout: Optional[float] = None,
    ) -> None:
        """Stop the process (SIGTERM, then SIGKILL).

        Raises:
            NotYetSpawnedError: If spawn() has not been called
        """
        await self._require_spawned().terminate(term_timeout, kill_timeout)

    async def __aenter__(self) -> Spawnable:
        await self.spawn()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        spawned = self.spawned
        if spawned is not None and not spawned.is_terminated():
            await spawned.terminate()

    def __repr__(self) -> str:
        return f"Spawnable(command={self.command}, state={self._state!r})"
