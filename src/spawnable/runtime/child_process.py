"""Process-creation primitive with lifecycle notifications.

spawn_process() returns a ChildProcess handle immediately. A watcher task
creates the OS process with asyncio.create_subprocess_exec and delivers
notifications to registered listeners, one at a time, on the event loop:

- spawn: the OS process exists and has a pid
- error(exc): process creation failed
- exit(code, signal): the process exited
- close(code, signal): follows exit once wait() has released the pipes

code is an int or None; signal is a signal name ("SIGKILL") or None. A child
killed by signal N (asyncio return code -N) reports code=None.

Key design points:
- POSIX: optional start_new_session=True keeps terminal SIGINT away from the child
- Windows: optional CREATE_NEW_PROCESS_GROUP for the same isolation
- Options are passed through to create_subprocess_exec verbatim
"""

from __future__ import annotations

import asyncio
import logging
import signal
import subprocess
import sys
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol, Union

from ..config import get_config, parse_signal_name

__all__ = [
    "ChildProcess",
    "ProcessHandle",
    "SignalLike",
    "spawn_process",
    "resolve_signal",
    "EVENTS",
    "IS_WINDOWS",
]

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS = sys.platform == "win32"

EVENTS = ("spawn", "error", "exit", "close")

SignalLike = Union[str, int, signal.Signals]


class ProcessHandle(Protocol):
    """What the lifecycle tracker needs from a process handle."""

    @property
    def pid(self) -> int | None: ...

    def on(self, event: str, callback: Callable[..., None]) -> None: ...

    def kill(self, sig: SignalLike) -> bool: ...


def resolve_signal(sig: SignalLike) -> signal.Signals:
    """Turn a signal name, number or enum member into signal.Signals.

    Args:
        sig: "SIGTERM", "term", 15 or signal.SIGTERM

    Raises:
        ValueError: If the platform has no such signal
    """
    if isinstance(sig, signal.Signals):
        return sig
    if isinstance(sig, int):
        return signal.Signals(sig)
    name = parse_signal_name(sig)
    if name is None:
        raise ValueError(f"Unknown signal: {sig!r}")
    return signal.Signals[name]


def _decode_returncode(returncode: int) -> tuple[int | None, str | None]:
    """Split an asyncio return code into (exit code, signal name)."""
    if returncode < 0 and not IS_WINDOWS:
        signum = -returncode
        try:
            return None, signal.Signals(signum).name
        except ValueError:
            return None, str(signum)
    return returncode, None


def _build_subprocess_kwargs(
    options: Mapping[str, Any],
    new_session: bool,
) -> dict[str, Any]:
    """Build kwargs for asyncio.create_subprocess_exec.

    Args:
        options: Caller options, passed through as given
        new_session: Isolate the child unless options already decide it

    Returns:
        Dict of kwargs for asyncio.create_subprocess_exec
    """
    kwargs: dict[str, Any] = dict(options)

    if kwargs.get("env") is not None:
        kwargs["env"] = dict(kwargs["env"])

    if new_session:
        if IS_WINDOWS:
            kwargs.setdefault("creationflags", subprocess.CREATE_NEW_PROCESS_GROUP)
        else:
            kwargs.setdefault("start_new_session", True)

    return kwargs


class ChildProcess:
    """Handle for one external process and its lifecycle notifications.

    Listeners are plain callables registered per event with on(). They run
    synchronously inside the watcher task; an exception raised by one listener
    is logged and does not prevent delivery to the others.

    Example:
        child = spawn_process("sleep", ["10"])
        child.on("exit", lambda code, sig: print(code, sig))
        ...
        child.kill("SIGTERM")
    """

    def __init__(
        self,
        executable: str,
        args: Sequence[str] = (),
        options: Mapping[str, Any] | None = None,
        *,
        new_session: bool | None = None,
    ) -> None:
        self.executable = executable
        self.args = list(args)
        self.options: dict[str, Any] = dict(options) if options else {}
        self.new_session = (
            new_session if new_session is not None else get_config().new_session
        )

        self._process: asyncio.subprocess.Process | None = None
        self._task: asyncio.Task[None] | None = None
        self._listeners: dict[str, list[Callable[..., None]]] = {
            event: [] for event in EVENTS
        }

    @property
    def pid(self) -> int | None:
        """OS process id, None until the process has been created."""
        return self._process.pid if self._process is not None else None

    @property
    def returncode(self) -> int | None:
        """Raw asyncio return code, None while running or before creation."""
        return self._process.returncode if self._process is not None else None

    @property
    def process(self) -> asyncio.subprocess.Process | None:
        """The underlying asyncio process, for stream I/O."""
        return self._process

    @property
    def stdin(self) -> asyncio.StreamWriter | None:
        return self._process.stdin if self._process is not None else None

    @property
    def stdout(self) -> asyncio.StreamReader | None:
        return self._process.stdout if self._process is not None else None

    @property
    def stderr(self) -> asyncio.StreamReader | None:
        return self._process.stderr if self._process is not None else None

    def on(self, event: str, callback: Callable[..., None]) -> None:
        """Register a listener for one of EVENTS."""
        if event not in self._listeners:
            raise ValueError(f"Unknown event: {event!r}")
        self._listeners[event].append(callback)

    def remove_listener(self, event: str, callback: Callable[..., None]) -> None:
        """Remove a previously registered listener (no-op if absent)."""
        listeners = self._listeners.get(event)
        if listeners and callback in listeners:
            listeners.remove(callback)

    def start(self) -> None:
        """Schedule process creation on the running event loop.

        Raises:
            RuntimeError: If already started or no event loop is running
        """
        if self._task is not None:
            raise RuntimeError("ChildProcess already started")
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run())

    def kill(self, sig: SignalLike = signal.SIGTERM) -> bool:
        """Send a signal to the process.

        Args:
            sig: Signal name, number or signal.Signals member

        Returns:
            True if delivered, False if there is no live process to signal

        Raises:
            ValueError: If the signal is unknown
        """
        signum = resolve_signal(sig)
        process = self._process
        if process is None or process.returncode is not None:
            logger.debug(f"No live process to send {signum.name} argv={self.executable}")
            return False

        try:
            process.send_signal(signum)
        except ProcessLookupError:
            logger.debug(f"Subprocess already exited pid={process.pid}")
            return False

        logger.debug(f"Sent {signum.name} to pid={process.pid}")
        return True

    async def _run(self) -> None:
        """Create the process, then report its termination."""
        kwargs = _build_subprocess_kwargs(self.options, self.new_session)

        try:
            process = await asyncio.create_subprocess_exec(
                self.executable,
                *self.args,
                **kwargs,
            )
        except Exception as e:
            logger.debug(f"Failed to start subprocess argv={self.executable}: {e!r}")
            self._emit("error", e)
            return

        self._process = process
        logger.debug(
            f"Started subprocess pid={process.pid} "
            f"argv={self.executable} args={self.args}"
        )
        self._emit("spawn")

        returncode = await process.wait()
        code, sig = _decode_returncode(returncode)

        logger.debug(
            f"Subprocess completed pid={process.pid} "
            f"returncode={returncode} code={code} signal={sig}"
        )
        self._emit("exit", code, sig)
        self._emit("close", code, sig)

    def _emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners[event]):
            try:
                callback(*args)
            except Exception:
                logger.exception(f"Error in {event!r} listener argv={self.executable}")

    def __repr__(self) -> str:
        return (
            f"ChildProcess(argv={[self.executable, *self.args]}, "
            f"pid={self.pid}, returncode={self.returncode})"
        )


def spawn_process(
    executable: str,
    args: Sequence[str] = (),
    options: Mapping[str, Any] | None = None,
    *,
    new_session: bool | None = None,
) -> ChildProcess:
    """Start a process and return its handle without waiting.

    Args:
        executable: Program to run
        args: Arguments after the executable
        options: kwargs for asyncio.create_subprocess_exec (cwd, env, stdout, ...)
        new_session: Isolate the child (default from SPAWNABLE_NEW_SESSION)

    Returns:
        A ChildProcess whose notifications start arriving on the event loop

    Raises:
        RuntimeError: If no event loop is running
    """
    child = ChildProcess(executable, args, options, new_session=new_session)
    child.start()
    return child
