import logging
from datetime import datetime

import pytest

from session_calendar.markets import Region
from session_calendar.registry import SessionRegistry
from session_calendar.session import Session

from sample_sessions import TR_CRYPTO_JSON, TR_EQUITY_JSON, US_EQUITY_JSON


@pytest.fixture
def tr_equity():
    return Session.from_json(TR_EQUITY_JSON)


@pytest.fixture
def us_equity():
    return Session.from_json(US_EQUITY_JSON)


@pytest.fixture
def tr_crypto():
    return Session.from_json(TR_CRYPTO_JSON)


@pytest.fixture
def saturday():
    """Saturday 12 March 2022, 15:00."""
    return datetime(2022, 3, 12, 15, 0)


@pytest.fixture
def registry(tr_equity, us_equity, tr_crypto, saturday):
    """Registry with the three sample markets and a clock frozen on a Saturday."""
    return SessionRegistry(
        [tr_equity, us_equity, tr_crypto],
        default_region=Region.TURKISH,
        clock=lambda: saturday,
    )


@pytest.fixture
def empty_registry():
    return SessionRegistry()


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
