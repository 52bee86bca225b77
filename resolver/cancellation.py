"""Cooperative cancellation for blocking resolver operations."""

from __future__ import annotations

import threading
import time
from typing import Iterable, Optional

from config import INTERVALS, OperationCanceledError


class CancellationToken:
    """Thread-safe cancellation flag.

    Operations check the token at their cooperative check points (table
    enumeration steps, gate waits, before starting a scan) and raise
    OperationCanceledError once it is set.

    Example:
        >>> token = CancellationToken()
        >>> threading.Timer(5.0, token.cancel).start()
        >>> resolver.refresh_address_table(cancel_token=token)
    """

    NONE: "CancellationToken"

    def __init__(self, reason: str = "The operation was canceled") -> None:
        self._event = threading.Event()
        self._reason = reason

    def cancel(self, reason: Optional[str] = None) -> None:
        if reason:
            self._reason = reason
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCanceledError(self._reason)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or timeout; returns True if cancelled."""
        return self._event.wait(timeout)

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"


class _NeverCancelledToken(CancellationToken):
    def cancel(self, reason: Optional[str] = None) -> None:
        raise TypeError("CancellationToken.NONE cannot be cancelled")


CancellationToken.NONE = _NeverCancelledToken()


class LinkedCancellationToken(CancellationToken):
    """A token that reads as cancelled when any of its sources is."""

    def __init__(self, sources: Iterable[CancellationToken]) -> None:
        super().__init__()
        self._sources = [s for s in sources if s is not None]

    def _cancelled_source(self) -> Optional[CancellationToken]:
        if self._event.is_set():
            return self
        for source in self._sources:
            if source.is_cancelled:
                return source
        return None

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled_source() is not None

    def raise_if_cancelled(self) -> None:
        source = self._cancelled_source()
        if source is self:
            super().raise_if_cancelled()
        elif source is not None:
            source.raise_if_cancelled()

    def wait(self, timeout: Optional[float] = None) -> bool:
        deadline = None if timeout is None else time.monotonic() + timeout
        while not self.is_cancelled:
            step = INTERVALS.GATE_POLL_SECONDS
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                step = min(step, remaining)
            self._event.wait(step)
        return True


__all__ = ["CancellationToken", "LinkedCancellationToken"]
