"""Command-line runner.

Runs one command with inherited stdio, waits for it and exits with a status
that mirrors how it ended:

    child exit code      process exited on its own
    128 + signum         process was killed by a signal
    127                  executable not found
    126                  any other creation error
    2                    empty command

Usage:
    spawnable [--timeout SECONDS] [--signal NAME] [-v] -- CMD [ARGS...]
    python -m spawnable -- sleep 5
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

import anyio

from .config import Config, get_config, parse_signal_name
from .errors import (
    EmptyCommandError,
    ExitedWithExitCodeError,
    KilledWithSignalError,
    MalformedTerminationError,
)
from .runtime.child_process import resolve_signal
from .spawnable import Spawnable

__all__ = ["main", "run_command", "build_parser", "configure_logging"]

logger = logging.getLogger(__name__)

EXIT_EMPTY_COMMAND = 2
EXIT_CANNOT_EXECUTE = 126
EXIT_NOT_FOUND = 127
EXIT_MALFORMED = 1

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _signal_exit_status(name: str) -> int:
    """Shell-style status for a signal name (128 + signum)."""
    try:
        return 128 + resolve_signal(name).value
    except ValueError:
        return 128 + int(name) if name.isdigit() else 128


async def _wait_or_terminate(proc: Spawnable, grace: float) -> None:
    """Wait for exit after a signal; terminate() if the child outlives grace."""
    with anyio.move_on_after(grace) as scope:
        await proc.wait_for_exit()
    if not scope.cancelled_caught:
        return

    logger.warning(f"pid={proc.pid} still running after {grace}s, terminating")
    await proc.terminate()
    if not proc.is_terminated():
        raise MalformedTerminationError()
    await proc.wait_for_exit()


async def run_command(
    command: Sequence[str],
    *,
    timeout: float | None = None,
    kill_signal: str | None = None,
) -> int:
    """Run a command to completion and map its outcome to an exit status.

    Args:
        command: Executable followed by its arguments
        timeout: Seconds before kill_signal is sent (None = wait forever)
        kill_signal: Signal sent on timeout (default from SPAWNABLE_KILL_SIGNAL);
            terminate() follows if the child outlives SPAWNABLE_TERM_TIMEOUT

    Returns:
        Exit status, see module docstring
    """
    proc = Spawnable(command)

    try:
        await proc.spawn()
    except EmptyCommandError as e:
        logger.error(str(e))
        return EXIT_EMPTY_COMMAND
    except FileNotFoundError as e:
        logger.error(f"Command not found: {e}")
        return EXIT_NOT_FOUND
    except OSError as e:
        logger.error(f"Cannot execute {command[0]}: {e}")
        return EXIT_CANNOT_EXECUTE

    logger.info(f"Started pid={proc.pid} argv={list(command)}")

    try:
        if timeout is None:
            await proc.wait_for_exit()
        else:
            with anyio.move_on_after(timeout) as scope:
                await proc.wait_for_exit()
            if scope.cancelled_caught:
                logger.warning(
                    f"Timed out after {timeout}s, sending {kill_signal or 'default signal'} "
                    f"to pid={proc.pid}"
                )
                proc.kill(kill_signal)
                await _wait_or_terminate(proc, get_config().term_timeout)
    except KilledWithSignalError as e:
        logger.info(f"pid={proc.pid} killed with signal {e.signal}")
        return _signal_exit_status(e.signal or "")
    except ExitedWithExitCodeError as e:
        logger.info(f"pid={proc.pid} exited with code {e.code}")
        return e.code if e.code is not None else EXIT_MALFORMED
    except MalformedTerminationError as e:
        logger.error(f"pid={proc.pid}: {e}")
        return EXIT_MALFORMED

    logger.info(f"pid={proc.pid} exited successfully")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spawnable",
        description="Run a command and report how it terminated",
    )
    parser.add_argument(
        "--timeout", type=float, default=None, help="Seconds before the command is signalled"
    )
    parser.add_argument(
        "--signal",
        type=str,
        default=None,
        help="Signal sent on timeout (default SPAWNABLE_KILL_SIGNAL or SIGINT)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    parser.add_argument("command", nargs=argparse.REMAINDER, help="Command and arguments")
    return parser


def configure_logging(config: Config, verbose: bool = False) -> None:
    """Set up handlers for the spawnable namespace.

    LOG_DEBUG mode writes DEBUG records to config.log_file; otherwise records
    go to stderr at INFO (DEBUG with verbose).
    """
    log_handlers: list[logging.Handler] = []

    if config.log_debug and config.log_file:
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log_handlers.append(file_handler)
        log_level = logging.DEBUG
    else:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log_handlers.append(stderr_handler)
        log_level = logging.DEBUG if verbose else logging.INFO

    # Root logger (third-party libraries) stays at WARNING
    logging.basicConfig(
        level=logging.WARNING,
        handlers=log_handlers,
    )
    logging.getLogger("spawnable").setLevel(log_level)


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]

    kill_signal = None
    if args.signal is not None:
        kill_signal = parse_signal_name(args.signal)
        if kill_signal is None:
            parser.error(f"unknown signal: {args.signal}")

    config = get_config()
    configure_logging(config, verbose=args.verbose)

    status = asyncio.run(
        run_command(command, timeout=args.timeout, kill_signal=kill_signal)
    )
    sys.exit(status)


if __name__ == "__main__":
    main()
