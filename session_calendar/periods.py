"""
Look-back periods used by price and equity charts.
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum


class PricePeriod(Enum):
    # (wire code, candle interval in minutes, look-back in days)
    PRICE_1D = ("1G", 5, None)
    PRICE_1W = ("1H", 30, 7)
    PRICE_1M = ("1A", 120, 30)
    PRICE_3M = ("3A", 360, 91)
    PRICE_1Y = ("1Y", 1440, 365)
    PRICE_5Y = ("5Y", 7200, 365 * 5)
    PRICE_ALL_TIME = ("all_time", 60, 365 * 100)

    def __init__(self, code: str, interval_minutes: int, lookback_days: int | None) -> None:
        self.code = code
        self.interval_minutes = interval_minutes
        self.lookback_days = lookback_days

    @property
    def lookback(self) -> timedelta | None:
        """Fixed look-back window; None for the intraday period."""
        if self.lookback_days is None:
            return None
        return timedelta(days=self.lookback_days)

    @classmethod
    def from_code(cls, code: str | None) -> PricePeriod | None:
        for period in cls:
            if period.code == code:
                return period
        return None
