"""Runtime primitives: process creation with notifications, completion cells.

This module provides the raw process handle the lifecycle tracker subscribes
to, and the memoizing completion cell its awaitable decisions are built on.
"""

from __future__ import annotations

from .child_process import ChildProcess, ProcessHandle, resolve_signal, spawn_process
from .completion import Completion

__all__ = [
    "ChildProcess",
    "Completion",
    "ProcessHandle",
    "resolve_signal",
    "spawn_process",
]
