"""Command-line runner tests.

Test coverage:
- Exit status mapping (success, exit code, signal, not found, empty)
- Timeout sends the configured signal, then terminate() if it is ignored
- Argument parsing and logging setup
"""

from __future__ import annotations

import logging
import signal
import sys
from collections.abc import Callable
from unittest import mock

import pytest

from spawnable.cli import (
    EXIT_EMPTY_COMMAND,
    EXIT_NOT_FOUND,
    build_parser,
    configure_logging,
    main,
    run_command,
)
from spawnable.config import Config, reload_config
from spawnable.runtime.child_process import IS_WINDOWS

posix_only = pytest.mark.skipif(IS_WINDOWS, reason="POSIX-specific test")


class TestRunCommand:
    """Exit status mapping."""

    @pytest.mark.asyncio
    @pytest.mark.timeout(10)
    async def test_success(self):
        assert await run_command([sys.executable, "-c", "pass"]) == 0

    @pytest.mark.asyncio
    @pytest.mark.timeout(10)
    async def test_exit_code(self):
        assert await run_command([sys.executable, "-c", "import sys; sys.exit(9)"]) == 9

    @pytest.mark.asyncio
    async def test_empty(self):
        assert await run_command([]) == EXIT_EMPTY_COMMAND

    @pytest.mark.asyncio
    @pytest.mark.timeout(10)
    async def test_not_found(self):
        assert await run_command(["nonexistent_command_xyz_123"]) == EXIT_NOT_FOUND

    @pytest.mark.asyncio
    @pytest.mark.timeout(10)
    @posix_only
    async def test_timeout_kills(self):
        status = await run_command(["sleep", "30"], timeout=0.2, kill_signal="SIGKILL")
        assert status == 128 + signal.SIGKILL

    @pytest.mark.asyncio
    @pytest.mark.timeout(10)
    @posix_only
    async def test_timeout_default_signal(self):
        status = await run_command(["sleep", "30"], timeout=0.2)
        assert status == 128 + signal.SIGINT

    @pytest.mark.asyncio
    @pytest.mark.timeout(15)
    @posix_only
    async def test_timeout_signal_ignored_falls_back_to_terminate(
        self, python_cmd: Callable[..., list[str]], monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setenv("SPAWNABLE_TERM_TIMEOUT", "0.2")
        reload_config()

        command = python_cmd("--duration", "30", "--interval", "1", "--on-term", "ignore")
        status = await run_command(command, timeout=1.5, kill_signal="SIGTERM")
        assert status == 128 + signal.SIGKILL

    @pytest.mark.asyncio
    @pytest.mark.timeout(10)
    async def test_timeout_not_reached(self):
        status = await run_command([sys.executable, "-c", "pass"], timeout=5.0)
        assert status == 0


class TestMain:
    """Argument parsing and process exit."""

    def test_parser(self):
        args = build_parser().parse_args(["--timeout", "3", "--signal", "term", "--", "ls", "-l"])
        assert args.timeout == 3.0
        assert args.signal == "term"
        assert args.command[-2:] == ["ls", "-l"]

    @pytest.mark.timeout(10)
    def test_main_exits_with_child_status(self):
        with mock.patch("spawnable.cli.configure_logging"):
            with pytest.raises(SystemExit) as exc_info:
                main(["--", sys.executable, "-c", "import sys; sys.exit(3)"])
        assert exc_info.value.code == 3

    def test_main_rejects_unknown_signal(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["--signal", "bogus", "--", "true"])
        assert exc_info.value.code == 2


class TestLogging:
    """configure_logging()."""

    @pytest.fixture(autouse=True)
    def restore_logging(self):
        root = logging.getLogger()
        handlers = list(root.handlers)
        level = root.level
        package_level = logging.getLogger("spawnable").level
        yield
        for handler in list(root.handlers):
            if handler not in handlers:
                root.removeHandler(handler)
                handler.close()
        root.setLevel(level)
        logging.getLogger("spawnable").setLevel(package_level)

    def test_stderr_default(self):
        with mock.patch("logging.basicConfig") as basic_config:
            configure_logging(Config())
        handlers = basic_config.call_args.kwargs["handlers"]
        assert isinstance(handlers[0], logging.StreamHandler)
        assert basic_config.call_args.kwargs["level"] == logging.WARNING
        assert logging.getLogger("spawnable").level == logging.INFO

    def test_verbose(self):
        with mock.patch("logging.basicConfig"):
            configure_logging(Config(), verbose=True)
        assert logging.getLogger("spawnable").level == logging.DEBUG

    def test_debug_file(self, tmp_path):
        log_file = tmp_path / "debug.log"
        config = Config(log_debug=True, log_file=str(log_file))
        with mock.patch("logging.basicConfig") as basic_config:
            configure_logging(config)
        handler = basic_config.call_args.kwargs["handlers"][0]
        assert isinstance(handler, logging.FileHandler)
        handler.close()
        assert logging.getLogger("spawnable").level == logging.DEBUG
