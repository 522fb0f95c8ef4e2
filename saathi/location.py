"""
This module provides the Location Provider.

A location lookup is permission-gated and may take a while, so it runs on a worker
thread and is represented by a `LocationRequest` handle. Failed lookups leave the
location empty; they are logged and never raised to the caller. A cancelled request
never writes its result.
"""
# saathi/location.py

from __future__ import annotations

import concurrent.futures
import logging
import threading
from typing import Callable, Optional

from saathi.events import Subscribers
from saathi.exceptions import LocationError, LocationPermissionDenied, LocationUnavailable
from saathi.models import Coordinates

logger = logging.getLogger(__name__)


class LocationRequest:
    """Handle for one in-flight location lookup."""

    def __init__(self, future: concurrent.futures.Future, lock=None):
        """
        Args:
            future: The running lookup.
            lock: Shared with the provider so that cancelling and applying a result
                never interleave.
        """
        self._future = future
        self._cancelled = False
        self._settled = threading.Event()
        self._lock = lock or threading.RLock()

    @property
    def cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def cancel(self) -> None:
        """Discards the lookup. Its result, if any arrives later, is never applied."""
        with self._lock:
            self._cancelled = True
        self._future.cancel()

    def done(self) -> bool:
        """True once the lookup finished and its outcome was applied or discarded."""
        return self._settled.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Blocks until the lookup is done or `timeout` elapses. Returns `done()`."""
        return self._settled.wait(timeout)


class LocationProvider:
    """Last known location plus an explicit, on-demand lookup."""

    def __init__(self, locator: Callable[[], Coordinates], executor: concurrent.futures.Executor):
        """
        Args:
            locator: Returns the device position, raising `LocationPermissionDenied` or
                `LocationUnavailable` when it cannot.
            executor: Runs lookups off the script thread.
        """
        self._locator = locator
        self._executor = executor
        self._location: Optional[Coordinates] = None
        self._in_flight: Optional[LocationRequest] = None
        self._lock = threading.RLock()
        self._subscribers = Subscribers()

    @property
    def location(self) -> Optional[Coordinates]:
        return self._location

    @property
    def request_in_flight(self) -> bool:
        with self._lock:
            return self._in_flight is not None

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        return self._subscribers.subscribe(callback)

    def request_location(self) -> LocationRequest:
        """Starts a lookup, or returns the one already in flight."""
        with self._lock:
            if self._in_flight is not None and not self._in_flight.cancelled:
                return self._in_flight
            future = self._executor.submit(self._locator)
            request = LocationRequest(future, self._lock)
            self._in_flight = request
        logger.debug("Location request started")
        future.add_done_callback(lambda f: self._complete(request, f))
        return request

    def _complete(self, request: LocationRequest, future: concurrent.futures.Future) -> None:
        try:
            self._apply(request, future)
        finally:
            request._settled.set()

    def _apply(self, request: LocationRequest, future: concurrent.futures.Future) -> None:
        with self._lock:
            if self._in_flight is request:
                self._in_flight = None
            if request.cancelled or future.cancelled():
                logger.debug("Location request cancelled; result discarded")
                return
            error = future.exception()
            if error is None:
                self._location = future.result()
        if isinstance(error, LocationPermissionDenied):
            logger.info("Location permission denied")
            return
        if isinstance(error, LocationError):
            logger.info("Location unavailable: %s", error)
            return
        if error is not None:
            logger.warning("Location lookup failed", exc_info=error)
            return
        self._subscribers.notify()


class BrowserLocator:
    """Serves the position the user's browser reports.

    While a page waits for a location, the GUI asks the browser through
    `streamlit_js_eval.get_geolocation` and hands the reply to `receive()`.
    Coordinates can also arrive through the `lat`/`lng` query parameters, which
    the GUI passes to `report()`. A lookup blocks until the browser answers or
    `timeout` seconds pass.
    """

    # GeolocationPositionError.PERMISSION_DENIED
    PERMISSION_DENIED = 1

    def __init__(self, timeout: float = 20.0):
        self.timeout = timeout
        self._coordinates: Optional[Coordinates] = None
        self._denied = False
        self._failure: Optional[str] = None
        self._changed = threading.Condition()

    def report(self, lat, lng) -> bool:
        """Records a reported position. Returns False if the values are not valid."""
        try:
            coordinates = Coordinates(float(lat), float(lng))
        except (TypeError, ValueError):
            return False
        if not (-90.0 <= coordinates.lat <= 90.0 and -180.0 <= coordinates.lng <= 180.0):
            return False
        with self._changed:
            self._coordinates = coordinates
            self._denied = False
            self._failure = None
            self._changed.notify_all()
        return True

    def deny(self) -> None:
        with self._changed:
            self._denied = True
            self._coordinates = None
            self._changed.notify_all()

    def fail(self, reason: str = "The browser could not determine a position") -> None:
        """Ends the waiting lookup without a position; a later lookup waits again."""
        with self._changed:
            self._failure = reason
            self._changed.notify_all()

    def receive(self, payload) -> bool:
        """Applies a `get_geolocation` reply.

        Returns:
            bool: True if the payload was an answer (a position or an error), False
            while the browser has not replied yet.
        """
        if not isinstance(payload, dict):
            return False
        coords = payload.get("coords")
        if isinstance(coords, dict):
            if not self.report(coords.get("latitude"), coords.get("longitude")):
                self.fail("The browser reported an invalid position")
            return True
        error = payload.get("error")
        if isinstance(error, dict):
            if error.get("code") == self.PERMISSION_DENIED:
                self.deny()
            else:
                self.fail(str(error.get("message") or "Position unavailable"))
            return True
        return False

    def __call__(self) -> Coordinates:
        with self._changed:
            self._changed.wait_for(
                lambda: self._denied or self._failure is not None or self._coordinates is not None,
                timeout=self.timeout,
            )
            if self._denied:
                raise LocationPermissionDenied()
            if self._coordinates is None:
                reason, self._failure = self._failure, None
                raise LocationUnavailable(reason or "The browser has not reported a position")
            return self._coordinates
