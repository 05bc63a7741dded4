"""Cooperative cancellation for long-running repairs."""

from __future__ import annotations

import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from types import FrameType

from importfix.errors import RepairCancelled


class CancellationToken:
    """A thread-safe flag checked at every suspension point of a repair.

    Usage::

        token = CancellationToken()
        # from a signal handler or another thread:
        token.cancel()

        # in the engine:
        token.raise_if_cancelled()
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def is_cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise RepairCancelled if cancellation has been requested."""
        if self._event.is_set():
            raise RepairCancelled("Repair cancelled")


def check_cancelled(token: CancellationToken | None) -> None:
    """Raise RepairCancelled if ``token`` is set; a missing token never cancels."""
    if token is not None:
        token.raise_if_cancelled()


@contextmanager
def cancel_on_interrupt(token: CancellationToken) -> Iterator[CancellationToken]:
    """Turn SIGINT into a cancellation request for ``token``.

    While the context is active, Ctrl+C sets the token instead of raising
    KeyboardInterrupt, so the run stops at its next check with every
    committed write intact. The previous handler is restored on exit.
    Signal handlers can only be installed from the main thread; elsewhere
    this is a no-op.
    """
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    def _handle(signum: int, frame: FrameType | None) -> None:
        token.cancel()

    previous = signal.signal(signal.SIGINT, _handle)
    try:
        yield token
    finally:
        signal.signal(
            signal.SIGINT,
            previous if previous is not None else signal.default_int_handler,
        )
