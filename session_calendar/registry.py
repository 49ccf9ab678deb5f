"""
Calendar registry: every loaded Session keyed by (asset class, region).

Callers may omit the asset class and/or region; the registry fills them in
from its defaults and falls back to (equity, default region), then to any
loaded Session, so lookups only fail when nothing has been loaded yet.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Callable, Iterable

from session_calendar.clock import now_local
from session_calendar.config import CalendarConfig
from session_calendar.markets import AssetClass, Region
from session_calendar.periods import PricePeriod
from session_calendar.session import Session

log = logging.getLogger("calendar.registry")

SessionKey = tuple[AssetClass, Region]


class RegistryNotInitialized(RuntimeError):
    """Raised when the registry is queried before any Session is loaded."""


class SessionRegistry:
    """Keyed collection of Sessions with default-region resolution."""

    DEFAULT_ASSET_CLASS = AssetClass.EQUITY

    def __init__(
        self,
        sessions: Iterable[Session] = (),
        default_region: Region = Region.TURKISH,
        clock: Callable[[], datetime] = now_local,
        retry_delay: float = 0.5,
    ) -> None:
        self._sessions: dict[SessionKey, Session] = {}
        self._default_region = default_region
        self._clock = clock
        self._retry_delay = retry_delay
        sessions = list(sessions)
        if sessions:
            self.load(sessions)

    @classmethod
    def from_config(cls, cfg: CalendarConfig, **kwargs) -> SessionRegistry:
        return cls(default_region=cfg.default_region, retry_delay=cfg.load_retry_seconds, **kwargs)

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return bool(self._sessions)

    @property
    def sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def load(self, sessions: Iterable[Session]) -> None:
        """Replace the whole calendar; the last Session for a key wins."""
        loaded: dict[SessionKey, Session] = {}
        for session in sessions:
            loaded[session.key] = session
        # Single reference swap: readers see the old or the new map, never a mix.
        self._sessions = loaded
        log.info(
            "Calendar loaded with %d session(s)", len(loaded),
            extra={"event": "calendar_loaded", "sessions": len(loaded)},
        )

    def wait_for_sessions(
        self,
        fetch: Callable[[], list[Session] | None],
        retry_delay: float | None = None,
        max_attempts: int | None = None,
    ) -> None:
        """
        Call *fetch* until it yields at least one Session, then load it.

        Fetch failures (exceptions or empty results) are logged and retried
        after *retry_delay* seconds. With *max_attempts* set, gives up by
        raising RegistryNotInitialized.
        """
        delay = self._retry_delay if retry_delay is None else retry_delay
        attempt = 0
        while True:
            attempt += 1
            try:
                sessions = fetch()
            except Exception:
                log.exception("Session fetch failed (attempt %d)", attempt,
                              extra={"event": "calendar_fetch_error", "attempt": attempt})
                sessions = None
            if sessions:
                self.load(sessions)
                return
            if sessions is not None:
                log.warning("Session fetch returned no sessions (attempt %d)", attempt,
                            extra={"event": "calendar_fetch_empty", "attempt": attempt})
            if max_attempts is not None and attempt >= max_attempts:
                raise RegistryNotInitialized(
                    f"No sessions loaded after {attempt} attempt(s)"
                )
            time.sleep(delay)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    @property
    def default_region(self) -> Region:
        return self._default_region

    def set_default_region(self, region: Region) -> None:
        log.info("Default region: %s → %s", self._default_region.value, region.value,
                 extra={"event": "default_region_changed", "region": region.value})
        self._default_region = region

    def resolve(
        self,
        asset_class: AssetClass | None = None,
        region: Region | None = None,
    ) -> Session:
        sessions = self._sessions
        default_region = self._default_region
        if not sessions:
            raise RegistryNotInitialized("Calendar queried before any session was loaded")

        key = (asset_class or self.DEFAULT_ASSET_CLASS, region or default_region)
        session = sessions.get(key)
        if session is not None:
            return session

        fallback = sessions.get((self.DEFAULT_ASSET_CLASS, default_region))
        if fallback is None:
            fallback = next(iter(sessions.values()))
        log.debug(
            "No session for %s/%s; using %s/%s",
            key[0].value, key[1].value,
            fallback.asset_class.value, fallback.region.value,
            extra={"event": "session_fallback", "region": key[1].value,
                   "asset_class": key[0].value},
        )
        return fallback

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _instant(self, instant: datetime | None) -> datetime:
        return instant if instant is not None else self._clock()

    def is_during_market_hours(
        self,
        asset_class: AssetClass | None = None,
        region: Region | None = None,
        instant: datetime | None = None,
    ) -> bool:
        return self.resolve(asset_class, region).is_during_market_hours(self._instant(instant))

    def get_day_start(
        self,
        asset_class: AssetClass | None = None,
        region: Region | None = None,
        instant: datetime | None = None,
    ) -> datetime:
        instant = self._instant(instant)
        return self.resolve(asset_class, region).get_day_start(instant).to_wall_clock(instant)

    def get_day_end(
        self,
        asset_class: AssetClass | None = None,
        region: Region | None = None,
        instant: datetime | None = None,
    ) -> datetime:
        instant = self._instant(instant)
        return self.resolve(asset_class, region).get_day_end(instant).to_wall_clock(instant)

    def get_previous_trading_day(
        self,
        asset_class: AssetClass | None = None,
        region: Region | None = None,
        instant: datetime | None = None,
    ) -> datetime:
        session = self.resolve(asset_class, region)
        return session.get_previous_closest_active_date(self._instant(instant))

    def get_next_trading_day(
        self,
        asset_class: AssetClass | None = None,
        region: Region | None = None,
        instant: datetime | None = None,
    ) -> datetime:
        session = self.resolve(asset_class, region)
        return session.get_next_closest_active_date(self._instant(instant))

    def get_period_start(
        self,
        period: PricePeriod,
        instant: datetime | None = None,
        asset_class: AssetClass | None = None,
        region: Region | None = None,
    ) -> datetime:
        """
        Start of a chart look-back window, always on a trading instant.

        The intraday period starts at the day's open; longer periods step
        back their fixed duration and move forward to the next active date.
        """
        instant = self._instant(instant)
        lookback = period.lookback
        if lookback is None:
            return self.get_day_start(asset_class, region, instant)
        session = self.resolve(asset_class, region)
        return session.get_next_closest_active_date(instant - lookback)
