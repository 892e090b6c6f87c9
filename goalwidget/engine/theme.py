"""Background theme hints for the native renderer."""

import zlib
from datetime import datetime
from enum import Enum

from . import constants as c


class BackgroundStatus(str, Enum):
    EMPTY = "empty"
    ON_TRACK = "on_track"
    BEHIND = "behind"
    URGENT = "urgent"
    CELEBRATE = "celebrate"
    END_OF_DAY = "end_of_day"


class TimeBand(str, Enum):
    DAWN = "dawn"  # 5am - 11am
    DAY = "day"  # 11am - 5pm
    DUSK = "dusk"  # 5pm - 10pm
    NIGHT = "night"  # 10pm - 5am


# Identifier the renderer falls back to when no artwork exists for a combination
FALLBACK_STATUS = "default"
FALLBACK_VARIANT = 1

VARIANT_COUNT = 3

# Status -> time bands that ship artwork
THEMED_BANDS = {
    BackgroundStatus.EMPTY: {TimeBand.DAWN, TimeBand.DAY, TimeBand.DUSK, TimeBand.NIGHT},
    BackgroundStatus.ON_TRACK: {TimeBand.DAWN, TimeBand.DAY, TimeBand.DUSK, TimeBand.NIGHT},
    BackgroundStatus.BEHIND: {TimeBand.DAWN, TimeBand.DAY, TimeBand.DUSK, TimeBand.NIGHT},
    BackgroundStatus.URGENT: {TimeBand.DAWN, TimeBand.DAY, TimeBand.DUSK, TimeBand.NIGHT},
    BackgroundStatus.CELEBRATE: {TimeBand.DAWN, TimeBand.DAY, TimeBand.DUSK, TimeBand.NIGHT},
    BackgroundStatus.END_OF_DAY: {TimeBand.NIGHT},
}

BACKGROUND_COLORS = {
    BackgroundStatus.EMPTY: {
        TimeBand.DAWN: "#E8F0FE",
        TimeBand.DAY: "#F0F4F8",
        TimeBand.DUSK: "#E8E0F0",
        TimeBand.NIGHT: "#1A1A2E",
    },
    BackgroundStatus.ON_TRACK: {
        TimeBand.DAWN: "#E3F2E1",
        TimeBand.DAY: "#D4EDDA",
        TimeBand.DUSK: "#C8E6C9",
        TimeBand.NIGHT: "#1B3D2F",
    },
    BackgroundStatus.BEHIND: {
        TimeBand.DAWN: "#FFF8E1",
        TimeBand.DAY: "#FFF3CD",
        TimeBand.DUSK: "#FFE0B2",
        TimeBand.NIGHT: "#3D3D1B",
    },
    BackgroundStatus.URGENT: {
        TimeBand.DAWN: "#FFEBEE",
        TimeBand.DAY: "#FFCDD2",
        TimeBand.DUSK: "#FFAB91",
        TimeBand.NIGHT: "#3D1B1B",
    },
    BackgroundStatus.CELEBRATE: {
        TimeBand.DAWN: "#F3E5F5",
        TimeBand.DAY: "#E1BEE7",
        TimeBand.DUSK: "#CE93D8",
        TimeBand.NIGHT: "#2D1B3D",
    },
}
END_OF_DAY_COLOR = "#1A1A2E"
FALLBACK_COLOR = "#F0F4F8"


def time_band(hour: int) -> TimeBand:
    """Time band for an hour (0-23)."""
    if 5 <= hour < 11:
        return TimeBand.DAWN
    elif 11 <= hour < 17:
        return TimeBand.DAY
    elif 17 <= hour < 22:
        return TimeBand.DUSK
    else:
        return TimeBand.NIGHT


def status_from_urgency(urgency: float) -> BackgroundStatus:
    if urgency >= c.URGENCY_WORRIED:
        return BackgroundStatus.URGENT
    if urgency >= c.URGENCY_HAPPY:
        return BackgroundStatus.BEHIND
    return BackgroundStatus.ON_TRACK


def variant(now: datetime, status: str) -> int:
    """
    Pick one of the artwork variants (1-3).

    Stable for a given day, hour and status so the background does not
    flicker between rebuilds.
    """
    day = now.year * 1000 + now.timetuple().tm_yday
    seed = day + now.hour * 10 + zlib.crc32(status.encode("utf-8"))
    return seed % VARIANT_COUNT + 1


def resolve(status: BackgroundStatus, now: datetime) -> tuple[str, str, int]:
    """
    Resolve the theme hints for a snapshot.

    Returns:
        Tuple of (status name, time band name, variant). Combinations
        without artwork resolve to the fallback status and variant.
    """
    band = TimeBand.NIGHT if status == BackgroundStatus.END_OF_DAY else time_band(now.hour)

    if band not in THEMED_BANDS.get(status, set()):
        return FALLBACK_STATUS, band.value, FALLBACK_VARIANT

    return status.value, band.value, variant(now, status.value)


def background_color_hex(status: str, band: str) -> str:
    """Flat background color for renderers without artwork."""
    try:
        status_enum = BackgroundStatus(status)
        band_enum = TimeBand(band)
    except ValueError:
        return FALLBACK_COLOR

    if status_enum == BackgroundStatus.END_OF_DAY:
        return END_OF_DAY_COLOR
    return BACKGROUND_COLORS[status_enum][band_enum]
