"""
Weekly trading calendar of a single (asset class, region) market.

A Session holds the market's Open/Close boundaries for one week and
answers market-hours questions for any timestamp by folding it onto that
week. An instant is in one of three states:

    InSession        → inside an Open→Close bracket (edges included)
    Gap-within-week  → inside a Close→Open bracket of the stored week
    Gap-beyond-week  → before the first or after the last stored point

Gap-beyond-week lookups are resolved by moving to the neighbouring week
(±168 h), so every query returns an answer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Sequence

from session_calendar.markets import AssetClass, Region
from session_calendar.week_point import HOURS_PER_WEEK, PointKind, WeekPoint

log = logging.getLogger("calendar.session")


class MalformedSession(ValueError):
    """Raised when a Session's points break the Open/Close invariant."""


@dataclass(frozen=True)
class Bracket:
    """Two consecutive stored points enclosing a query."""
    first: WeekPoint
    second: WeekPoint

    @property
    def in_session(self) -> bool:
        return self.first.kind is PointKind.OPEN and self.second.kind is PointKind.CLOSE

    @property
    def open_point(self) -> WeekPoint:
        return self.first if self.first.kind is PointKind.OPEN else self.second

    @property
    def close_point(self) -> WeekPoint:
        return self.first if self.first.kind is PointKind.CLOSE else self.second


class Session:
    """Read-only weekly calendar; build a new one to change the schedule."""

    def __init__(
        self,
        asset_class: AssetClass,
        region: Region,
        points: Sequence[WeekPoint],
    ) -> None:
        self.asset_class = asset_class
        self.region = region
        self._points: tuple[WeekPoint, ...] = tuple(points)
        _validate(self._points, asset_class, region)

    @property
    def points(self) -> tuple[WeekPoint, ...]:
        return self._points

    @property
    def key(self) -> tuple[AssetClass, Region]:
        return (self.asset_class, self.region)

    def __repr__(self) -> str:
        return (
            f"Session(asset_class={self.asset_class.value!r}, "
            f"region={self.region.value!r}, points={len(self._points)})"
        )

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def locate(self, point: WeekPoint) -> Bracket | None:
        """
        Return the stored bracket enclosing *point*, or None when the
        point is outside the stored week (Gap-beyond-week).
        """
        pts = self._points
        for i in range(len(pts) - 1):
            first, second = pts[i], pts[i + 1]
            if not point.is_between(first, second):
                continue
            # A close touching the next open: the instant belongs to the gap.
            if (
                second.kind is PointKind.CLOSE
                and point.is_equal(second)
                and i + 2 < len(pts)
                and pts[i + 2].is_equal(second)
            ):
                return Bracket(second, pts[i + 2])
            return Bracket(first, second)
        return None

    def _before_week(self, point: WeekPoint) -> bool:
        return point.is_before(self._points[0])

    def _last_of_kind(self, kind: PointKind) -> WeekPoint:
        # Alternation guarantees both kinds are present.
        return next(p for p in reversed(self._points) if p.kind is kind)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_during_market_hours(self, instant: datetime) -> bool:
        bracket = self.locate(WeekPoint.from_timestamp(instant))
        return bracket is not None and bracket.in_session

    def get_day_start(self, instant: datetime) -> WeekPoint:
        """Open of the current or upcoming session; last open of the week in a weekend gap."""
        point = WeekPoint.from_timestamp(instant)
        bracket = self.locate(point)
        if bracket is not None:
            return bracket.open_point
        last_open = self._last_of_kind(PointKind.OPEN)
        return last_open.shifted(-HOURS_PER_WEEK) if self._before_week(point) else last_open

    def get_day_end(self, instant: datetime) -> WeekPoint:
        """Close of the current or preceding session; last close of the week in a weekend gap."""
        point = WeekPoint.from_timestamp(instant)
        bracket = self.locate(point)
        if bracket is not None:
            return bracket.close_point
        last_close = self._last_of_kind(PointKind.CLOSE)
        return last_close.shifted(-HOURS_PER_WEEK) if self._before_week(point) else last_close

    def get_previous_closest_active_date(self, instant: datetime) -> datetime:
        """The instant itself while trading, else the most recent boundary before it."""
        point = WeekPoint.from_timestamp(instant)
        bracket = self.locate(point)
        if bracket is None:
            shift = -HOURS_PER_WEEK if self._before_week(point) else 0
            log.debug(
                "Previous active date outside stored week; shifting %+d h", shift,
                extra={"event": "week_wrap", "region": self.region.value,
                       "asset_class": self.asset_class.value},
            )
            return self._points[-1].shifted(shift).to_wall_clock(instant)
        if bracket.in_session:
            return instant
        return bracket.first.to_wall_clock(instant)

    def get_next_closest_active_date(self, instant: datetime) -> datetime:
        """The instant itself while trading, else the first boundary after it."""
        point = WeekPoint.from_timestamp(instant)
        bracket = self.locate(point)
        if bracket is None:
            shift = 0 if self._before_week(point) else HOURS_PER_WEEK
            log.debug(
                "Next active date outside stored week; shifting %+d h", shift,
                extra={"event": "week_wrap", "region": self.region.value,
                       "asset_class": self.asset_class.value},
            )
            return self._points[0].shifted(shift).to_wall_clock(instant)
        if bracket.in_session:
            return instant
        return bracket.second.to_wall_clock(instant)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_json(self) -> dict:
        return {
            "region": self.region.value,
            "asset_class": self.asset_class.value,
            "points": [p.to_json() for p in self._points],
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> Session:
        return cls(
            asset_class=AssetClass.parse(data["asset_class"]),
            region=Region.parse(data["region"]),
            points=[WeekPoint.from_json(p) for p in data["points"]],
        )


def _validate(points: tuple[WeekPoint, ...], asset_class: AssetClass, region: Region) -> None:
    label = f"{asset_class.value}/{region.value}"
    if len(points) < 2 or len(points) % 2:
        raise MalformedSession(
            f"{label}: expected an even number (>= 2) of points, got {len(points)}"
        )
    for i, p in enumerate(points):
        expected = PointKind.OPEN if i % 2 == 0 else PointKind.CLOSE
        if p.kind is not expected:
            raise MalformedSession(
                f"{label}: point {i} ({p}) should be {expected.value}"
            )
    for i in range(1, len(points)):
        prev, cur = points[i - 1], points[i]
        if cur.is_after(prev):
            continue
        # Only a close may touch the following open.
        if prev.kind is PointKind.CLOSE and cur.is_equal(prev):
            continue
        raise MalformedSession(
            f"{label}: points must increase, {cur} follows {prev}"
        )
