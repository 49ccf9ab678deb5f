"""
Wall-clock helpers shared by the calendar.

All calendar answers are expressed in the caller's local wall clock, so
"now" is the naive local time unless a zone is asked for explicitly.
"""

from __future__ import annotations

from datetime import datetime, tzinfo

import pytz


def now_local() -> datetime:
    """Current local wall-clock time (naive)."""
    return datetime.now()


def now_in(zone: str) -> datetime:
    """Current time in *zone* as an aware datetime."""
    return datetime.now(get_zone(zone))


def get_zone(name: str) -> tzinfo:
    """Look up an IANA zone; raises pytz.UnknownTimeZoneError for bad names."""
    return pytz.timezone(name)


def attach_zone(naive: datetime, reference: datetime) -> datetime:
    """Give *naive* the tzinfo of *reference* (no-op when reference is naive)."""
    tz = reference.tzinfo
    if tz is None:
        return naive
    # pytz zones must localize so the right DST offset is picked.
    localize = getattr(tz, "localize", None)
    if localize is not None:
        return localize(naive)
    return naive.replace(tzinfo=tz)
