"""Tests for building Sessions from raw schedule records."""

import logging
from datetime import date, datetime

import pytest

from session_calendar.markets import AssetClass, Region
from session_calendar.schedule import build_sessions, sessions_from_json, sessions_to_json
from session_calendar.week_point import PointKind

from sample_sessions import TR_CRYPTO_JSON, TR_EQUITY_JSON, US_EQUITY_JSON

WEEKDAYS = [0, 1, 2, 3, 4]


def record(**overrides):
    base = {
        "region": "tr",
        "asset_class": "equity",
        "time_zone": "Europe/Istanbul",
        "days_open": WEEKDAYS,
        "time_open": "10:00",
        "time_close": "18:00",
    }
    base.update(overrides)
    return base


def keys(session):
    return [(p.week_hour, p.minute, p.second, p.kind.value) for p in session.points]


def expected_keys(payload):
    return [(p["hour"], p["minute"], p["second"], p["type"]) for p in payload["points"]]


class TestBuildSessions:

    def test_local_market(self):
        (session,) = build_sessions([record()], local_tz="Europe/Istanbul", week_of=date(2022, 3, 14))
        assert session.key == (AssetClass.EQUITY, Region.TURKISH)
        assert keys(session) == expected_keys(TR_EQUITY_JSON)

    def test_foreign_market_converted_to_local_clock(self):
        nyse = record(region="us", time_zone="America/New_York", time_open="09:30", time_close="16:00")
        # Week before the US daylight-time switch: New York is 8 hours behind Istanbul.
        (session,) = build_sessions([nyse], local_tz="Europe/Istanbul", week_of=date(2022, 3, 7))
        assert keys(session) == expected_keys(US_EQUITY_JSON)

    def test_daylight_time_shifts_the_week(self):
        nyse = record(region="us", time_zone="America/New_York", time_open="09:30", time_close="16:00")
        (session,) = build_sessions([nyse], local_tz="Europe/Istanbul", week_of=date(2022, 3, 14))
        assert session.points[0].key == (16, 30, 0)
        assert session.points[1].key == (23, 0, 0)

    def test_round_the_clock_market(self):
        crypto = record(asset_class="crypto", days_open=list(range(7)), time_open="00:00", time_close="23:59")
        (session,) = build_sessions([crypto], local_tz="Europe/Istanbul", week_of=date(2022, 3, 14))
        assert keys(session) == expected_keys(TR_CRYPTO_JSON)

    def test_overnight_session_continues_into_monday(self):
        fx = record(asset_class="forex", time_zone="UTC", days_open=[6], time_open="22:00", time_close="05:00")
        (session,) = build_sessions([fx], local_tz="UTC", week_of=date(2022, 3, 14))
        assert [p.key for p in session.points] == [(0, 0, 0), (5, 0, 0), (166, 0, 0), (168, 0, 0)]
        assert [p.kind for p in session.points] == [
            PointKind.OPEN, PointKind.CLOSE, PointKind.OPEN, PointKind.CLOSE,
        ]

    def test_overnight_session_answers_monday_queries(self):
        fx = record(asset_class="forex", time_zone="UTC", days_open=[6], time_open="22:00", time_close="05:00")
        (session,) = build_sessions([fx], local_tz="UTC", week_of=date(2022, 3, 14))
        monday_2am = datetime(2022, 3, 14, 2, 0)
        monday_6am = datetime(2022, 3, 14, 6, 0)

        assert session.is_during_market_hours(monday_2am)
        assert session.is_during_market_hours(datetime(2022, 3, 20, 23, 30))
        assert not session.is_during_market_hours(monday_6am)
        assert session.get_previous_closest_active_date(monday_2am) == monday_2am
        assert session.get_previous_closest_active_date(monday_6am) == datetime(2022, 3, 14, 5, 0)
        assert session.get_next_closest_active_date(monday_6am) == datetime(2022, 3, 20, 22, 0)

    def test_opens_before_monday_wrap_to_end_of_week(self):
        tokyo = record(region="test", time_zone="Asia/Tokyo", time_open="09:00", time_close="15:00")
        (session,) = build_sessions([tokyo], local_tz="America/New_York", week_of=date(2022, 3, 7))
        # Monday 09:00-15:00 in Tokyo is Sunday 19:00 to Monday 01:00 in New York.
        assert [p.key for p in session.points[:4]] == [(0, 0, 0), (1, 0, 0), (19, 0, 0), (25, 0, 0)]
        assert [p.key for p in session.points[-2:]] == [(163, 0, 0), (168, 0, 0)]

    @pytest.mark.parametrize("instant, expected", [
        (datetime(2022, 3, 13, 20, 0), True),
        (datetime(2022, 3, 14, 0, 30), True),
        (datetime(2022, 3, 14, 1, 0), True),
        (datetime(2022, 3, 14, 2, 0), False),
        (datetime(2022, 3, 14, 19, 30), True),
    ])
    def test_wrapped_market_hours(self, instant, expected):
        tokyo = record(region="test", time_zone="Asia/Tokyo", time_open="09:00", time_close="15:00")
        (session,) = build_sessions([tokyo], local_tz="America/New_York", week_of=date(2022, 3, 7))
        assert session.is_during_market_hours(instant) is expected

    def test_unordered_duplicate_days(self):
        (session,) = build_sessions(
            [record(days_open=[4, 0, 0])], local_tz="Europe/Istanbul", week_of=date(2022, 3, 14),
        )
        assert [p.week_hour for p in session.points] == [10, 18, 106, 114]

    def test_default_local_zone_from_config(self, monkeypatch):
        monkeypatch.setenv("CALENDAR_LOCAL_TZ", "UTC")
        (session,) = build_sessions([record()], week_of=date(2022, 3, 14))
        assert session.points[0].key == (7, 0, 0)

    def test_default_week_is_current(self):
        (session,) = build_sessions([record()], local_tz="Europe/Istanbul")
        assert session.points[0].key == (10, 0, 0)

    def test_built_session_answers_queries(self):
        (session,) = build_sessions([record()], local_tz="Europe/Istanbul", week_of=date(2022, 3, 14))
        assert session.is_during_market_hours(datetime(2022, 3, 16, 12, 0))
        assert session.get_next_closest_active_date(datetime(2022, 3, 12, 15, 0)) == datetime(2022, 3, 14, 10, 0)


class TestBadRecords:

    @pytest.mark.parametrize("bad", [
        record(time_zone=None),
        record(days_open=None),
        record(time_zone="Mars/Olympus"),
        record(time_open="25:99"),
        record(time_close="six"),
        record(region="jp"),
        record(asset_class="bonds"),
        record(days_open=[]),
        record(days_open=[0, 7]),
        record(days_open=["monday"]),
    ])
    def test_skipped_with_warning(self, bad, caplog):
        with caplog.at_level(logging.WARNING, logger="calendar.schedule"):
            sessions = build_sessions([bad, record()], local_tz="Europe/Istanbul", week_of=date(2022, 3, 14))
        assert len(sessions) == 1
        skipped = [r for r in caplog.records if getattr(r, "event", None) == "schedule_record_skipped"]
        assert len(skipped) == 1

    def test_identical_open_and_close_are_a_full_day(self):
        (session,) = build_sessions(
            [record(days_open=[0], time_open="09:00", time_close="09:00")],
            local_tz="Europe/Istanbul", week_of=date(2022, 3, 14),
        )
        assert [p.week_hour for p in session.points] == [9, 33]


class TestCacheEnvelope:

    def test_round_trip(self, tr_equity, us_equity):
        payload = sessions_to_json([tr_equity, us_equity])
        assert [item["region"] for item in payload["data"]] == ["tr", "us"]
        restored = sessions_from_json(payload)
        assert [s.key for s in restored] == [tr_equity.key, us_equity.key]
        assert [keys(s) for s in restored] == [keys(tr_equity), keys(us_equity)]

    def test_empty_payload(self):
        assert sessions_from_json({}) == []
        assert sessions_from_json({"data": None}) == []
