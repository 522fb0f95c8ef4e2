"""
Mode content for the four assistant modes.

Each builder turns `ModeProps` into a `ModeContent` view model made of sections and
items. Builders only see `ModeProps`: they never read the session, the translation
provider or the location provider. Text is returned as translation keys (plus proper
nouns such as store names) and resolved by the GUI.

Modes that list places rank them by distance when a location is known and fall back
to a fixed list with a hint when it is not.
"""
# saathi/modes.py

from __future__ import annotations

import math
from typing import Callable, Dict, List, NamedTuple, Optional

from saathi.models import AvatarMood, Coordinates, ModeProps

EARTH_RADIUS_KM = 6371.0
NEARBY_LIMIT = 5


class Mode(NamedTuple):
    key: str
    route: str
    title_key: str
    description_key: str
    icon: str
    avatar_mood: AvatarMood


class Place(NamedTuple):
    name: str
    kind_key: str
    lat: float
    lng: float


class ModeItem(NamedTuple):
    title: str
    detail_key: str
    distance_km: Optional[float] = None


class ModeSection(NamedTuple):
    heading_key: str
    items: List[ModeItem]
    note_key: Optional[str] = None


class ModeContent(NamedTuple):
    mode: Mode
    sections: List[ModeSection]
    dark_mode: bool
    font_size: float


RELIGIOUS = Mode("religious", "/religious", "religious_mode", "religious_description", "🛕", AvatarMood.RELIGIOUS)
WELLNESS = Mode("wellness", "/wellness", "wellness_mode", "wellness_description", "💊", AvatarMood.WELLNESS)
SHOPPING = Mode("shopping", "/shopping", "shopping_mode", "shopping_description", "🛒", AvatarMood.SHOPPING)
SCHEMES = Mode("schemes", "/schemes", "scheme_mode", "scheme_description", "📜", AvatarMood.SCHEMES)

MODES = (RELIGIOUS, WELLNESS, SHOPPING, SCHEMES)
MODES_BY_ROUTE = {mode.route: mode for mode in MODES}

STORES = [
    Place("Apna Bazaar", "store_grocery", 28.6315, 77.2167),
    Place("Jan Aushadhi Kendra", "store_pharmacy", 28.6448, 77.2167),
    Place("Sharma General Store", "store_general", 28.5672, 77.2100),
    Place("Modern Bazaar", "store_grocery", 28.5535, 77.1935),
    Place("Apollo Pharmacy", "store_pharmacy", 28.6129, 77.2295),
    Place("Gupta Kirana", "store_general", 28.6562, 77.2410),
]

TEMPLES = [
    Place("Birla Mandir", "place_temple", 28.6127, 77.2004),
    Place("Gurudwara Bangla Sahib", "place_gurudwara", 28.6264, 77.2090),
    Place("Jama Masjid", "place_mosque", 28.6507, 77.2334),
    Place("Sacred Heart Cathedral", "place_church", 28.6220, 77.2109),
    Place("Kalkaji Mandir", "place_temple", 28.5503, 77.2588),
    Place("Hanuman Mandir, Connaught Place", "place_temple", 28.6297, 77.2159),
]

PRAYERS = [
    ModeItem("Gayatri Mantra", "prayer_morning"),
    ModeItem("Om Jai Jagdish Hare", "prayer_evening"),
    ModeItem("Hanuman Chalisa", "prayer_anytime"),
]

HEALTH_TIPS = [
    ModeItem("🚶", "tip_walk"),
    ModeItem("💧", "tip_water"),
    ModeItem("🌙", "tip_sleep"),
]

MEDICINE_REMINDERS = [
    ModeItem("08:30", "reminder_morning"),
    ModeItem("20:30", "reminder_evening"),
]

GOVERNMENT_SCHEMES = [
    ModeItem("Ayushman Bharat (PM-JAY)", "scheme_ayushman"),
    ModeItem("Indira Gandhi National Old Age Pension Scheme", "scheme_pension"),
    ModeItem("Pradhan Mantri Vaya Vandana Yojana", "scheme_pmvvy"),
    ModeItem("Senior Citizens Savings Scheme", "scheme_scss"),
]


def distance_km(origin: Coordinates, lat: float, lng: float) -> float:
    """Great-circle distance between `origin` and `(lat, lng)` in kilometres."""
    phi1, phi2 = math.radians(origin.lat), math.radians(lat)
    d_phi = math.radians(lat - origin.lat)
    d_lambda = math.radians(lng - origin.lng)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def nearby_section(heading_key: str, places: List[Place], location: Optional[Coordinates]) -> ModeSection:
    """Lists places nearest first, or in their listed order when `location` is None."""
    if location is None:
        items = [ModeItem(p.name, p.kind_key) for p in places[:NEARBY_LIMIT]]
        return ModeSection(heading_key, items, note_key="location_unavailable")
    ranked = sorted(
        (ModeItem(p.name, p.kind_key, round(distance_km(location, p.lat, p.lng), 1)) for p in places),
        key=lambda item: item.distance_km,
    )
    return ModeSection(heading_key, ranked[:NEARBY_LIMIT])


def build_religious(props: ModeProps) -> List[ModeSection]:
    return [
        ModeSection("daily_prayers", list(PRAYERS)),
        nearby_section("nearby_temples", TEMPLES, props.location),
    ]


def build_wellness(props: ModeProps) -> List[ModeSection]:
    return [
        ModeSection("medicine_reminders", list(MEDICINE_REMINDERS)),
        ModeSection("health_tips", list(HEALTH_TIPS)),
    ]


def build_shopping(props: ModeProps) -> List[ModeSection]:
    return [nearby_section("nearby_stores", STORES, props.location)]


def build_schemes(props: ModeProps) -> List[ModeSection]:
    return [ModeSection("available_schemes", list(GOVERNMENT_SCHEMES))]


BUILDERS: Dict[str, Callable[[ModeProps], List[ModeSection]]] = {
    RELIGIOUS.key: build_religious,
    WELLNESS.key: build_wellness,
    SHOPPING.key: build_shopping,
    SCHEMES.key: build_schemes,
}


def build_mode_content(mode: Mode, props: ModeProps) -> ModeContent:
    """Builds the view model rendered on a mode page."""
    return ModeContent(mode, BUILDERS[mode.key](props), props.dark_mode, props.font_size)
