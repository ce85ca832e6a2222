"""Lifecycle tracking for one spawned process.

Spawned turns the raw, possibly duplicated notifications of a process handle
(spawn, error, exit, close) into durable state and two memoizing completions:

- started: resolves on spawn, rejects with the creation error
- exited: resolves on a clean zero exit, otherwise rejects with
  KilledWithSignalError / ExitedWithExitCodeError / MalformedTerminationError
  or the creation error

The platform reports one real termination twice (exit and close); the first
one wins and the second is discarded by a guard flag.
"""

from __future__ import annotations

import logging
from typing import Optional

import anyio

from .config import get_config
from .errors import (
    ExitedWithExitCodeError,
    KilledWithSignalError,
    MalformedTerminationError,
)
from .runtime.child_process import ProcessHandle, SignalLike
from .runtime.completion import Completion

__all__ = ["Spawned"]

logger = logging.getLogger(__name__)


class Spawned:
    """Tracks the lifecycle of a live process handle.

    All state changes happen synchronously inside the handle's notification
    callbacks, which the event loop delivers one at a time, so no locking is
    needed. Queries are pure reads.

    Example:
        ```python
        spawned = Spawned(spawn_process("make", ["test"]))
        await spawned.wait_for_start()
        try:
            await spawned.wait_for_exit()
        except ExitedWithExitCodeError as e:
            print(f"make failed with {e.code}")
        ```
    """

    def __init__(self, handle: ProcessHandle) -> None:
        """Subscribe to the handle and set up both completions.

        Args:
            handle: Live process handle (see runtime.child_process)
        """
        self._handle = handle
        self._started = False
        self._terminated = False
        self._exit_code: Optional[int] = None
        self._signal: Optional[str] = None

        self._start_completion = Completion("started")
        self._exit_completion = Completion("exited")

        handle.on("spawn", self._on_spawn)
        handle.on("error", self._on_error)
        handle.on("close", self._on_close_or_exit)
        handle.on("exit", self._on_close_or_exit)

        # The process may already be running when we attach
        if handle.pid is not None:
            self._started = True
            self._start_completion.resolve()

    # ------------------------------------------------------------------
    # Notification handlers
    # ------------------------------------------------------------------

    def _on_spawn(self) -> None:
        if self._started:
            return
        self._started = True
        logger.debug(f"Process started pid={self._handle.pid}")
        self._start_completion.resolve()

    def _on_error(self, error: BaseException) -> None:
        logger.debug(f"Process error: {error!r}")
        self._start_completion.reject(error)
        self._exit_completion.reject(error)

    def _on_close_or_exit(self, code: Optional[int], signal: Optional[str]) -> None:
        """Record the first termination notification, ignore the second.

        Args:
            code: Exit code, None if the process was killed by a signal
            signal: Signal name, None if the process exited on its own
        """
        if self._terminated:
            return

        self._terminated = True
        if code is not None:
            self._exit_code = code
        if signal:
            self._signal = signal

        logger.debug(
            f"Process terminated pid={self._handle.pid} code={code} signal={signal}"
        )
        self._decide_exit(code, signal)

    def _decide_exit(self, code: Optional[int], signal: Optional[str]) -> None:
        if signal:
            self._exit_completion.reject(KilledWithSignalError(signal))
        elif code is None:
            logger.warning(
                f"Termination without exit code or signal pid={self._handle.pid}"
            )
            self._exit_completion.reject(MalformedTerminationError())
        elif code == 0:
            self._exit_completion.resolve()
        else:
            self._exit_completion.reject(ExitedWithExitCodeError(code))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_started(self) -> bool:
        """Whether the process has been observed as started."""
        return self._started

    def is_terminated(self) -> bool:
        """Whether a termination notification has been received."""
        return self._terminated

    def was_killed(self) -> bool:
        """Whether the process was terminated by a signal."""
        return self._signal is not None

    def exited_successfully(self) -> bool:
        """Terminated on its own with exit code 0."""
        return self._terminated and not self.was_killed() and self._exit_code == 0

    def exited_with_error(self) -> bool:
        """Terminated on its own with a non-zero exit code."""
        return (
            self._terminated
            and not self.was_killed()
            and self._exit_code is not None
            and self._exit_code != 0
        )

    @property
    def signal(self) -> Optional[str]:
        """Name of the signal that terminated the process, if any."""
        return self._signal

    @property
    def exit_code(self) -> Optional[int]:
        """Exit code of the process, None until it exits or if it was killed."""
        return self._exit_code

    @property
    def pid(self) -> Optional[int]:
        return self._handle.pid

    @property
    def child_process(self) -> ProcessHandle:
        """The raw process handle, for stream I/O."""
        return self._handle

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def kill(self, signal: Optional[SignalLike] = None) -> bool:
        """Send a signal without waiting for the process to terminate.

        Termination is observed through wait_for_exit().

        Args:
            signal: Signal to send (default from SPAWNABLE_KILL_SIGNAL, SIGINT)

        Returns:
            True if the signal was delivered, False if the process is gone
        """
        if self._terminated:
            logger.debug(f"Process already terminated pid={self._handle.pid}")
            return False
        if signal is None:
            signal = get_config().kill_signal
        return self._handle.kill(signal)

    async def wait_for_start(self) -> None:
        """Wait until the process has started.

        Raises:
            The creation error, if the process could not be started
        """
        await self._start_completion.wait()

    async def wait_for_exit(self) -> None:
        """Wait until the process has exited successfully.

        Raises:
            KilledWithSignalError: Process was killed by a signal
            ExitedWithExitCodeError: Process exited with a non-zero code
            MalformedTerminationError: Neither code nor signal was reported
            The creation error, if the process could not be started
        """
        await self._exit_completion.wait()

    async def terminate(
        self,
        term_timeout: Optional[float] = None,
        kill_timeout: Optional[float] = None,
    ) -> None:
        """Stop the process gracefully, then forcefully if needed.

        Termination strategy:
        1. Send SIGTERM
        2. Wait up to term_timeout for the process to terminate
        3. If still running, send SIGKILL
        4. Wait up to kill_timeout

        Runs shielded from cancellation. The termination outcome is not raised
        here; it stays available from wait_for_exit().

        Args:
            term_timeout: Seconds to wait after SIGTERM (default from config)
            kill_timeout: Seconds to wait after SIGKILL (default from config)
        """
        config = get_config()
        term_timeout = term_timeout if term_timeout is not None else config.term_timeout
        kill_timeout = kill_timeout if kill_timeout is not None else config.kill_timeout
        pid = self._handle.pid

        with anyio.CancelScope(shield=True):
            # An error after start decides the exit completion without a
            # termination notification
            if self._exit_completion.decided or not self._started:
                return

            logger.debug(f"Terminating subprocess pid={pid}")
            self._handle.kill("SIGTERM")
            if await self._wait_terminated(term_timeout):
                logger.debug(f"Subprocess terminated gracefully pid={pid}")
                return

            logger.debug(f"Force killing subprocess pid={pid}")
            self._handle.kill("SIGKILL")
            if await self._wait_terminated(kill_timeout):
                logger.debug(f"Subprocess killed pid={pid}")
                return

            logger.warning(f"Subprocess did not exit after kill pid={pid}")

    async def _wait_terminated(self, timeout: float) -> bool:
        with anyio.move_on_after(timeout):
            try:
                await self._exit_completion.wait()
            except Exception as e:
                logger.debug(f"Subprocess pid={self._handle.pid} ended: {e!r}")
        return self._exit_completion.decided

    def __repr__(self) -> str:
        return (
            f"Spawned(pid={self.pid}, started={self._started}, "
            f"terminated={self._terminated}, exit_code={self._exit_code}, "
            f"signal={self._signal})"
        )
