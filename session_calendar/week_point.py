"""
WeekPoint: an instant inside a repeating Monday-based 7-day week.

A point is stored as (week_hour, minute, second) where week_hour counts
hours from Monday 00:00, so Tuesday 09:30 is (33, 30, 0). Session
boundaries carry an OPEN or CLOSE kind; points built from query
timestamps are PLAIN. Ordering and equality only look at the numbers.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, time, timedelta
from enum import Enum
from functools import total_ordering
from typing import Any, Mapping

from session_calendar.clock import attach_zone

HOURS_PER_DAY = 24
HOURS_PER_WEEK = 7 * HOURS_PER_DAY


class PointKind(str, Enum):
    OPEN = "open"
    CLOSE = "close"
    PLAIN = "plain"


@total_ordering
@dataclass(frozen=True, eq=False)
class WeekPoint:
    week_hour: int
    minute: int = 0
    second: int = 0
    kind: PointKind = PointKind.PLAIN

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_timestamp(cls, t: datetime, kind: PointKind = PointKind.PLAIN) -> WeekPoint:
        """Place a wall-clock timestamp in its week (sub-second part dropped)."""
        week_hour = t.hour + HOURS_PER_DAY * (t.isoweekday() - 1)
        return cls(week_hour, t.minute, t.second, kind)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> WeekPoint:
        kind = PointKind(data.get("type") or PointKind.PLAIN.value)
        return cls(int(data["hour"]), int(data["minute"]), int(data["second"]), kind)

    def to_json(self) -> dict:
        payload: dict = {"hour": self.week_hour, "minute": self.minute, "second": self.second}
        if self.kind is not PointKind.PLAIN:
            payload["type"] = self.kind.value
        return payload

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    @property
    def key(self) -> tuple[int, int, int]:
        return (self.week_hour, self.minute, self.second)

    def is_before(self, other: WeekPoint) -> bool:
        return self.key < other.key

    def is_equal(self, other: WeekPoint) -> bool:
        return self.key == other.key

    def is_after(self, other: WeekPoint) -> bool:
        return not self.is_equal(other) and not self.is_before(other)

    def is_between(self, first: WeekPoint, second: WeekPoint) -> bool:
        """
        True when the point lies in [first, second].

        A point sitting exactly on a Close→Open pair's edge is the last
        instant of one session and the start of the following gap at the
        same time; it is reported as outside the pair.
        """
        on_edge = self.is_equal(first) or self.is_equal(second)
        if on_edge and first.kind is PointKind.CLOSE and second.kind is PointKind.OPEN:
            return False
        return on_edge or (self.is_after(first) and self.is_before(second))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WeekPoint):
            return NotImplemented
        return self.is_equal(other)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, WeekPoint):
            return NotImplemented
        return self.is_before(other)

    def __hash__(self) -> int:
        return hash(self.key)

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def shifted(self, hours: int) -> WeekPoint:
        return replace(self, week_hour=self.week_hour + hours)

    def to_wall_clock(self, reference: datetime) -> datetime:
        """
        Project onto the Monday-based week containing *reference*.

        week_hour values below 0 or above 167 land in the previous or
        next week. The result carries the reference's tzinfo.
        """
        monday = datetime.combine(
            reference.date() - timedelta(days=reference.isoweekday() - 1), time()
        )
        naive = monday + timedelta(hours=self.week_hour, minutes=self.minute, seconds=self.second)
        return attach_zone(naive, reference)

    def __str__(self) -> str:
        day, hour = divmod(self.week_hour, HOURS_PER_DAY)
        return f"{self.kind.value}@d{day} {hour:02d}:{self.minute:02d}:{self.second:02d}"
