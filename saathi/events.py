"""Subscriber lists shared by the session, location and translation providers."""
# saathi/events.py

from __future__ import annotations

import threading
from typing import Callable, List


class Subscribers:
    """Holds callbacks and notifies them in subscription order."""

    def __init__(self) -> None:
        self._callbacks: List[Callable[[], None]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Registers `callback` and returns a function that removes it again."""
        with self._lock:
            self._callbacks.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unsubscribe

    def notify(self) -> None:
        # Copy so callbacks may unsubscribe while being notified.
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            callback()

    def __len__(self) -> int:
        return len(self._callbacks)
