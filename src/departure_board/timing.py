from __future__ import annotations

import re
from typing import Optional

from .models import ResolvedService

MINUTES_PER_DAY = 24 * 60

_STRAY_CHARACTER = re.compile(r"[^0-9:]")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_clock(text: Optional[str]) -> Optional[int]:
    """Return minutes since midnight for an ``HH:MM`` string.

    One stray non-digit character is dropped before parsing, so values such as
    ``"*10:30"`` still read. Status words like ``"On time"`` give ``None``.
    Ranges are not checked: ``"25:99"`` is 1599.
    """

    if not text:
        return None
    text = _STRAY_CHARACTER.sub("", text, count=1)
    parts = text.split(":")
    if len(parts) < 2:
        return None
    hours = _leading_int(parts[0])
    minutes = _leading_int(parts[1])
    if hours is None or minutes is None:
        return None
    return 60 * hours + minutes


def compute_duration(service: ResolvedService) -> Optional[int]:
    """Minutes between departure and arrival, preferring estimated times.

    Journeys that cross midnight wrap around, which is only correct for
    journeys shorter than a day.
    """

    arrival = parse_clock(service.estimated_arrival)
    if arrival is None:
        arrival = parse_clock(service.scheduled_arrival)
    departure = parse_clock(service.etd)
    if departure is None:
        departure = parse_clock(service.std)
    if arrival is None or departure is None:
        return None

    minutes = arrival - departure
    if minutes < 0:
        minutes += MINUTES_PER_DAY
    return minutes


def format_duration(minutes: Optional[int]) -> Optional[str]:
    """Turn minutes into a label such as ``1h 5m``."""

    if minutes is None or minutes < 0:
        return None
    hours, mins = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def _leading_int(value: str) -> Optional[int]:
    match = _LEADING_INT.match(value)
    if not match:
        return None
    return int(match.group(1))
