"""Cancellation signal passed by callers into engine operations.

A Deadline combines an optional timeout with an optional threading.Event.
The engine checks it between steps and the store checks it while a
statement runs; either way the transaction is rolled back.
"""

import threading
import time

from assigner.errors import OperationCancelled


class Deadline:
    """Timeout and/or cancel event for one operation."""

    def __init__(
        self,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._expires_at = time.monotonic() + timeout if timeout is not None else None
        self._cancel_event = cancel_event

    @classmethod
    def after(cls, seconds: float) -> "Deadline":
        return cls(timeout=seconds)

    def expired(self) -> bool:
        """True once the timeout elapsed or the event was set."""
        if self._cancel_event is not None and self._cancel_event.is_set():
            return True
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def check(self) -> None:
        """Raise OperationCancelled if the deadline is over."""
        if self.expired():
            raise OperationCancelled()


def check_deadline(deadline: Deadline | None) -> None:
    if deadline is not None:
        deadline.check()
