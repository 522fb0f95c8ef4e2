"""
This module defines the primary data models for the Saathi application.

These classes describe the entities that flow between the providers and the page
shells: the signed-in user and their emergency contact, the visual preferences
restored on every page, coordinates reported by the browser, and the small enums
that name session and avatar states.
"""
# saathi/models.py

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional

FONT_SIZE_RANGE = (0.8, 1.5)
CONTRAST_RANGE = (0.8, 1.2)


def clamp(value: float, bounds: tuple) -> float:
    """Limits `value` to the inclusive `(low, high)` bounds."""
    low, high = bounds
    return max(low, min(high, float(value)))


class EmergencyContact(NamedTuple):
    name: str
    phone: str


# Shown in the emergency-call overlay when the user has not saved a contact.
DEFAULT_EMERGENCY_CONTACT = EmergencyContact(name="Rahul", phone="+91 98765 43210")


class Coordinates(NamedTuple):
    lat: float
    lng: float


class User:
    """Represents a signed-in Saathi user.

    Attributes:
        username (str): The user's login name.
        password_hash (str): The hashed version of the user's password.
        full_name (str): The user's full name, used in greetings.
        emergency_contact (EmergencyContact | None): The person called from the
            emergency overlay, if the user saved one.
    """
    def __init__(self, username, password_hash, full_name, emergency_contact=None):
        self.username = username
        self.password_hash = password_hash
        self.full_name = full_name
        self.emergency_contact = emergency_contact


@dataclass
class UserPreferences:
    """Visual preferences restored on every page.

    `font_size` and `contrast` are clamped to their ranges on construction, so a
    preferences object can always be applied to rendering as-is.
    """
    dark_mode: bool = False
    font_size: float = 1.0
    contrast: float = 1.0

    def __post_init__(self):
        self.font_size = clamp(self.font_size, FONT_SIZE_RANGE)
        self.contrast = clamp(self.contrast, CONTRAST_RANGE)


class AuthStatus(Enum):
    UNKNOWN = "unknown"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class AvatarMood(Enum):
    NEUTRAL = "neutral"
    HAPPY = "happy"
    THINKING = "thinking"
    RELIGIOUS = "religious"
    WELLNESS = "wellness"
    SHOPPING = "shopping"
    SCHEMES = "schemes"


class ModeProps(NamedTuple):
    """The only view state a mode content component receives."""
    dark_mode: bool
    font_size: float
    location: Optional[Coordinates]
