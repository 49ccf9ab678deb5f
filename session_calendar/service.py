"""
Calendar start-up: logging, configuration and the first session load.
"""

from __future__ import annotations

import logging
from typing import Callable

from session_calendar.config import CalendarConfig, load_config
from session_calendar.logging_utils import setup_logging
from session_calendar.registry import SessionRegistry
from session_calendar.session import Session

log = logging.getLogger("calendar.service")


def start_calendar(
    fetch: Callable[[], list[Session] | None],
    cfg: CalendarConfig | None = None,
    max_attempts: int | None = None,
) -> SessionRegistry:
    """
    Configure logging, build the registry and block until *fetch* has
    delivered at least one Session.

    *cfg* defaults to the environment configuration. See
    SessionRegistry.wait_for_sessions for the retry behaviour.
    """
    if cfg is None:
        cfg = load_config()
    setup_logging(cfg.log_level)
    log.info(
        "Calendar starting: default_region=%s local_tz=%s",
        cfg.default_region.value, cfg.local_timezone,
        extra={"event": "calendar_start", "region": cfg.default_region.value},
    )

    registry = SessionRegistry.from_config(cfg)
    registry.wait_for_sessions(fetch, max_attempts=max_attempts)
    return registry
