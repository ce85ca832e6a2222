"""One-shot memoizing completion cell.

A Completion is decided at most once, either resolved or rejected with an
exception. Every awaiter, including ones that start waiting long after the
decision, observes the same outcome.
"""

from __future__ import annotations

import logging
from types import TracebackType

import anyio

__all__ = ["Completion"]

logger = logging.getLogger(__name__)


class Completion:
    """A decision made at most once and replayed to every awaiter.

    Example:
        started = Completion("started")
        started.resolve()
        await started.wait()  # returns immediately, now and forever

        exited = Completion("exited")
        exited.reject(ExitedWithExitCodeError(1))
        await exited.wait()  # raises ExitedWithExitCodeError, every time

    Every wait() raises the same exception instance. Python sets __context__
    on each raise, so awaiting inside an except block rewrites the shared
    instance's __context__ for all holders; compare by identity or attributes,
    never by chain.

    Attributes:
        name: Label used in log messages and repr
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._event = anyio.Event()
        self._decided = False
        self._exception: BaseException | None = None
        self._traceback: TracebackType | None = None

    @property
    def decided(self) -> bool:
        """Whether the outcome has been decided."""
        return self._decided

    @property
    def succeeded(self) -> bool:
        """Whether the outcome is decided and successful."""
        return self._decided and self._exception is None

    @property
    def exception(self) -> BaseException | None:
        """The rejection exception, or None if pending or resolved."""
        return self._exception

    def resolve(self) -> bool:
        """Decide successfully.

        Returns:
            True if this call decided the outcome, False if already decided
        """
        if self._decided:
            return False
        self._decided = True
        self._event.set()
        logger.debug(f"Completion {self.name!r} resolved")
        return True

    def reject(self, exception: BaseException) -> bool:
        """Decide with an exception.

        Args:
            exception: Raised by every wait()

        Returns:
            True if this call decided the outcome, False if already decided
        """
        if self._decided:
            return False
        self._decided = True
        self._exception = exception
        self._traceback = exception.__traceback__
        self._event.set()
        logger.debug(f"Completion {self.name!r} rejected: {exception!r}")
        return True

    async def wait(self) -> None:
        """Wait for the decision.

        Raises:
            The rejection exception, if the completion was rejected
        """
        await self._event.wait()
        if self._exception is not None:
            # Traceback pinned to decision time; repeated raises must not grow it
            raise self._exception.with_traceback(self._traceback)

    def __repr__(self) -> str:
        if not self._decided:
            state = "pending"
        elif self._exception is None:
            state = "resolved"
        else:
            state = f"rejected={self._exception!r}"
        return f"Completion({self.name!r}, {state})"
