"""
Exceptions raised inside Saathi.

None of these ever reach the user as a raw message. The providers that raise or
receive them recover locally and degrade to a defined fallback (default
preferences, no location, unauthenticated session).
"""
# saathi/exceptions.py


class SaathiError(Exception):
    """Base class for all Saathi errors."""


class StorageUnavailableError(SaathiError):
    """Raised when the local data directory cannot be read or written."""


class SessionResolutionError(SaathiError):
    """Raised when a stored session cannot be turned back into a user."""


class LocationError(SaathiError):
    """Base class for failed location lookups."""


class LocationPermissionDenied(LocationError):
    """The user declined to share their location."""

    def __init__(self, message: str = "Location permission denied"):
        super().__init__(message)


class LocationUnavailable(LocationError):
    """The device could not report a location."""

    def __init__(self, message: str = "Location unavailable"):
        super().__init__(message)
