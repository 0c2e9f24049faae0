"""Rules for which events are worth announcing."""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from ctfbot import Event, Restrictions
from ctfbot.config import Config

OPEN_RESTRICTIONS = (Restrictions.OPEN, Restrictions.ACADEMIC)


def days_until(start: datetime, now: datetime) -> int:
    """Whole days from now until start, truncated toward zero (negative if started)."""
    return math.trunc((start - now) / timedelta(days=1))


def should_notify(event: Event, config: Config, now: datetime | None = None) -> bool:
    """Decide whether an event should be announced.

    Series listed in always_show_ctfs are always shown. Otherwise only
    open or academic events that can be played online and start within
    the lookahead window qualify. Events already running still qualify.
    """
    if event.ctf_id in config.always_show_ctfs:
        return True

    if event.restrictions not in OPEN_RESTRICTIONS:
        return False

    now = now or datetime.now(timezone.utc)
    return not event.onsite and days_until(event.start_time, now) <= config.lookahead_days


def select_events(
    events: Iterable[Event], config: Config, now: datetime | None = None
) -> list[Event]:
    """Events that should be announced, in their original order."""
    now = now or datetime.now(timezone.utc)
    return [e for e in events if should_notify(e, config, now)]
