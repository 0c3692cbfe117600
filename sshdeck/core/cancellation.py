"""
Cancellation token shared by the operations of one connection
"""
import threading

from .exceptions import ConnectionError


class CancelToken:
    """
    One-shot cancellation flag.

    The session facade hands the same token to every operation it starts
    on a connection and cancels it on disconnect. Long-running operations
    call ``raise_if_cancelled`` between chunks.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = "Connection closed"

    def cancel(self, reason: str = "Connection closed") -> None:
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ConnectionError(self._reason)
