"""
Build Sessions from raw market schedule records.

A raw record describes one market in its own time zone:

    {"region": "tr", "asset_class": "equity", "time_zone": "Europe/Istanbul",
     "days_open": [0, 1, 2, 3, 4], "time_open": "10:00", "time_close": "18:00"}

days_open counts from Monday (0) to Sunday (6). Each trading day becomes
one Open/Close pair expressed in the caller's local wall clock, as hours
from that week's Monday 00:00.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Any, Iterable, Mapping

import pytz

from session_calendar.clock import get_zone, now_in
from session_calendar.config import load_config
from session_calendar.markets import AssetClass, Region
from session_calendar.session import MalformedSession, Session
from session_calendar.week_point import HOURS_PER_WEEK, PointKind, WeekPoint

log = logging.getLogger("calendar.schedule")

_REQUIRED_FIELDS = ("region", "asset_class", "time_zone", "days_open", "time_open", "time_close")
_WEEK_START = WeekPoint(0, kind=PointKind.OPEN)
_WEEK_END = WeekPoint(HOURS_PER_WEEK, kind=PointKind.CLOSE)


def build_sessions(
    records: Iterable[Mapping[str, Any]],
    local_tz: str | None = None,
    week_of: date | None = None,
) -> list[Session]:
    """
    Convert raw schedule records into Sessions.

    *local_tz* is the caller's wall-clock zone (configuration default when
    omitted). *week_of* picks the week whose UTC offsets are used; it
    defaults to the current week in each market's zone, which matters only
    around DST changes. Bad records are logged and skipped.
    """
    local_zone = get_zone(local_tz or load_config().local_timezone)
    sessions: list[Session] = []
    for record in records:
        session = _build_session(record, local_zone, week_of)
        if session is not None:
            sessions.append(session)
    log.info("Built %d session(s) from schedule", len(sessions),
             extra={"event": "schedule_built", "sessions": len(sessions)})
    return sessions


def _skip(record: Mapping[str, Any], reason: str) -> None:
    log.warning(
        "Skipping schedule record: %s", reason,
        extra={"event": "schedule_record_skipped", "reason": reason,
               "region": record.get("region"), "asset_class": record.get("asset_class")},
    )


def _parse_hhmm(value: Any) -> time | None:
    try:
        return datetime.strptime(str(value).strip(), "%H:%M").time()
    except ValueError:
        return None


def _build_session(
    record: Mapping[str, Any],
    local_zone: tzinfo,
    week_of: date | None,
) -> Session | None:
    missing = [k for k in _REQUIRED_FIELDS if record.get(k) is None]
    if missing:
        _skip(record, f"missing {', '.join(missing)}")
        return None

    try:
        asset_class = AssetClass.parse(record["asset_class"])
        region = Region.parse(record["region"])
    except ValueError as exc:
        _skip(record, str(exc))
        return None

    try:
        market_zone = get_zone(record["time_zone"])
    except pytz.UnknownTimeZoneError:
        _skip(record, f"unknown time zone {record['time_zone']!r}")
        return None

    open_time = _parse_hhmm(record["time_open"])
    close_time = _parse_hhmm(record["time_close"])
    if open_time is None or close_time is None:
        _skip(record, f"bad open/close time {record['time_open']!r}/{record['time_close']!r}")
        return None

    raw_days = list(record["days_open"])
    if not raw_days or any(not isinstance(d, int) or not 0 <= d <= 6 for d in raw_days):
        _skip(record, f"bad days_open {record['days_open']!r}")
        return None
    days = sorted(set(raw_days))

    ref = week_of or now_in(record["time_zone"]).date()
    monday = ref - timedelta(days=ref.weekday())
    local_monday = datetime.combine(monday, time())

    pairs: list[tuple[WeekPoint, WeekPoint]] = []
    for day in days:
        day_date = monday + timedelta(days=day)
        open_dt = market_zone.localize(datetime.combine(day_date, open_time))
        close_date = day_date if close_time > open_time else day_date + timedelta(days=1)
        close_dt = market_zone.localize(datetime.combine(close_date, close_time))

        open_point = _week_point(open_dt, local_zone, local_monday, PointKind.OPEN)
        close_point = _week_point(close_dt, local_zone, local_monday, PointKind.CLOSE)

        # Keep every open inside the Monday-based week.
        if open_point.week_hour < 0:
            open_point, close_point = open_point.shifted(HOURS_PER_WEEK), close_point.shifted(HOURS_PER_WEEK)
        elif open_point.week_hour >= HOURS_PER_WEEK:
            open_point, close_point = open_point.shifted(-HOURS_PER_WEEK), close_point.shifted(-HOURS_PER_WEEK)

        # A session running past Sunday 24:00 resumes at Monday 00:00.
        if close_point.is_after(_WEEK_END):
            pairs.append((open_point, _WEEK_END))
            pairs.append((_WEEK_START, close_point.shifted(-HOURS_PER_WEEK)))
        else:
            pairs.append((open_point, close_point))

    pairs.sort(key=lambda pair: pair[0].key)
    points = [p for pair in pairs for p in pair]
    try:
        return Session(asset_class, region, points)
    except MalformedSession as exc:
        _skip(record, str(exc))
        return None


def _week_point(
    moment: datetime,
    local_zone: tzinfo,
    local_monday: datetime,
    kind: PointKind,
) -> WeekPoint:
    local = moment.astimezone(local_zone).replace(tzinfo=None)
    total = int((local - local_monday).total_seconds())
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return WeekPoint(hours, minutes, seconds, kind)


# ----------------------------------------------------------------------
# Cache envelope
# ----------------------------------------------------------------------

def sessions_to_json(sessions: Iterable[Session]) -> dict:
    return {"data": [s.to_json() for s in sessions]}


def sessions_from_json(payload: Mapping[str, Any]) -> list[Session]:
    return [Session.from_json(item) for item in payload.get("data") or []]
