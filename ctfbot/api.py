"""CTFtime JSON API client and event decoder."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any

import requests

from ctfbot import BASE_URL, USER_AGENT, Event, EventFormat, FeedDecodeError, Restrictions, Team

API_EVENTS_URL = f"{BASE_URL}/api/v1/events/"


def upcoming_events_url(now: datetime, days: int = 100, limit: int = 100) -> str:
    """API query for events starting between now and `days` days from now."""
    start = int(now.timestamp())
    finish = int((now + timedelta(days=days)).timestamp())
    return f"{API_EVENTS_URL}?limit={limit}&start={start}&finish={finish}"


def fetch_upcoming_events(now: datetime | None = None) -> list[Event]:
    """Fetch upcoming events from the CTFtime API."""
    now = now or datetime.now(timezone.utc)
    response = requests.get(
        upcoming_events_url(now), headers={"User-Agent": USER_AGENT}, timeout=30
    )
    response.raise_for_status()
    return parse_api_events(response.text)


def parse_api_events(text: str | bytes, strict: bool = False) -> list[Event]:
    """Parse an API response (a JSON array of events) into Events.

    Records that cannot be decoded are reported and skipped unless
    strict is set, in which case the FeedDecodeError is raised.
    """
    try:
        records = json.loads(text)
    except ValueError as e:
        raise FeedDecodeError(f"response is not valid JSON: {e}") from None
    if not isinstance(records, list):
        raise FeedDecodeError(f"expected a JSON array, got {type(records).__name__}")

    events: list[Event] = []
    for record in records:
        try:
            events.append(event_from_record(record))
        except FeedDecodeError as e:
            if strict:
                raise
            title = record.get("title", "?") if isinstance(record, dict) else "?"
            print(f"  Skipping API event {title!r}: {e}")
    return events


def event_from_record(record: dict) -> Event:
    """Convert one API record into an Event.

    Upstream names differ from ours: start/finish are the event times,
    logo is the logo URL, ctftime_url is the CTFtime page, id is the
    instance id and ctf_id the id of the series.
    """
    if not isinstance(record, dict):
        raise FeedDecodeError(f"expected a JSON object, got {type(record).__name__}")

    return Event(
        title=_required(record, "title", str),
        origin_url=_required(record, "ctftime_url", str),
        start_time=_timestamp(record, "start"),
        end_time=_timestamp(record, "finish"),
        format=EventFormat.from_label(_required(record, "format", str)),
        public_votable=_required(record, "public_votable", bool),
        weight=float(_required(record, "weight", (int, float))),
        restrictions=Restrictions.parse(_required(record, "restrictions", str)),
        onsite=_required(record, "onsite", bool),
        ctf_id=_required(record, "ctf_id", int),
        organizers=_organizers(record),
        detail_url=_optional_str(record, "url"),
        logo_url=_optional_str(record, "logo"),
        live_feed_url=_optional_str(record, "live_feed"),
        location=_optional_str(record, "location"),
        event_id=_optional_int(record, "id"),
        participants=_optional_int(record, "participants"),
    )


def _required(record: dict, name: str, kind: type | tuple[type, ...]) -> Any:
    if name not in record or record[name] is None:
        raise FeedDecodeError("missing required field", field=name)
    value = record[name]
    # bool is a subclass of int, so reject it explicitly for numeric fields
    if not isinstance(value, kind) or (isinstance(value, bool) and kind is not bool):
        raise FeedDecodeError(f"unexpected value {value!r}", field=name)
    return value


def _optional_str(record: dict, name: str) -> str | None:
    """Empty strings mean the field is not set."""
    value = record.get(name)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise FeedDecodeError(f"expected a string, got {value!r}", field=name)
    return value


def _optional_int(record: dict, name: str) -> int | None:
    value = record.get(name)
    if value is None:
        return None
    if not isinstance(value, int) or isinstance(value, bool):
        raise FeedDecodeError(f"expected an integer, got {value!r}", field=name)
    return value


def _timestamp(record: dict, name: str) -> datetime:
    value = _required(record, name, str)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise FeedDecodeError(f"bad timestamp {value!r}", field=name) from None
    if parsed.tzinfo is None:
        raise FeedDecodeError(f"timestamp has no UTC offset: {value!r}", field=name)
    return parsed


def _organizers(record: dict) -> tuple[Team, ...]:
    raw = record.get("organizers") or []
    try:
        return tuple(Team(id=int(t["id"]), name=str(t["name"])) for t in raw)
    except (TypeError, KeyError, ValueError) as e:
        raise FeedDecodeError(f"bad organizer list: {e}", field="organizers") from None
