"""Parser for the CTFtime upcoming-events RSS feed.

Each <item> carries the usual RSS fields plus CTFtime specific ones
(start_date, finish_date, format, restrictions, organizers, ...). The
feed is read as a stream of start/end tokens; the text of each element
inside an item is collected into a dict and turned into an Event once
the item closes.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterator
from datetime import datetime
from typing import TypeVar
from xml.etree.ElementTree import Element, ParseError, XMLPullParser

import requests

from ctfbot import BASE_URL, USER_AGENT, Event, EventFormat, FeedDecodeError, Restrictions, Team

RSS_FEED_URL = f"{BASE_URL}/event/list/upcoming/rss/"

DATE_FORMAT = "%Y%m%dT%H%M%S%z"
DATE_PATTERN = re.compile(r"\d{8}T\d{6}")

ITEM_FIELDS = (
    "title",
    "link",
    "guid",
    "start_date",
    "finish_date",
    "logo_url",
    "url",
    "format",
    "public_votable",
    "weight",
    "live_feed",
    "restrictions",
    "location",
    "onsite",
    "organizers",
    "ctf_id",
    "ctf_name",
)

REQUIRED_FIELDS = (
    "title",
    "link",
    "guid",
    "start_date",
    "finish_date",
    "format",
    "public_votable",
    "weight",
    "restrictions",
    "onsite",
    "organizers",
    "ctf_id",
    "ctf_name",
)

CHUNK_SIZE = 16 * 1024

T = TypeVar("T")


def fetch_upcoming_feed() -> list[Event]:
    """Fetch upcoming events from the CTFtime RSS feed."""
    response = requests.get(RSS_FEED_URL, headers={"User-Agent": USER_AGENT}, timeout=30)
    response.raise_for_status()
    return parse_ctftime_feed(response.content)


def parse_ctftime_feed(data: bytes | str, strict: bool = False) -> list[Event]:
    """Parse RSS feed data into Events, in feed order.

    Items that cannot be decoded are reported and skipped. A broken XML
    document stops parsing and the events completed so far are returned.
    With strict=True both kinds of error are raised instead.
    """
    events: list[Event] = []
    in_item = False
    fields: dict[str, str] = {}

    try:
        for kind, elem in _tokens(data):
            name = _local_name(elem.tag)
            if kind == "start":
                if name == "item":
                    in_item = True
                    fields = {}
                continue

            if name == "item":
                in_item = False
                try:
                    events.append(build_event(fields))
                except FeedDecodeError as e:
                    if strict:
                        raise
                    print(f"  Skipping feed item {fields.get('title', '?')!r}: {e}")
                fields = {}
                elem.clear()
            elif in_item and name in ITEM_FIELDS:
                text = elem.text
                if text is not None and text.strip():
                    fields[name] = text
    except ParseError as e:
        if strict:
            raise
        print(f"  ERROR: malformed feed, stopping after {len(events)} event(s): {e}")

    return events


def _tokens(data: bytes | str) -> Iterator[tuple[str, Element]]:
    """Yield (event, element) pairs, feeding the parser in chunks."""
    parser = XMLPullParser(events=("start", "end"))
    for offset in range(0, len(data), CHUNK_SIZE):
        parser.feed(data[offset:offset + CHUNK_SIZE])
        yield from parser.read_events()
    parser.close()
    yield from parser.read_events()


def build_event(fields: dict[str, str]) -> Event:
    """Validate the raw text of one feed item and convert it into an Event."""
    for name in REQUIRED_FIELDS:
        if name not in fields:
            raise FeedDecodeError("missing required field", field=name)

    logo_path = fields.get("logo_url")
    return Event(
        title=fields["title"],
        origin_url=fields["link"],
        start_time=parse_timestamp(fields["start_date"], "start_date"),
        end_time=parse_timestamp(fields["finish_date"], "finish_date"),
        format=EventFormat.from_code(_convert(int, fields["format"], "format")),
        public_votable=parse_bool(fields["public_votable"]),
        weight=_convert(float, fields["weight"], "weight"),
        restrictions=Restrictions.parse(fields["restrictions"]),
        onsite=parse_bool(fields["onsite"]),
        ctf_id=_convert(int, fields["ctf_id"], "ctf_id"),
        organizers=parse_organizers(fields["organizers"]),
        detail_url=fields.get("url"),
        logo_url=BASE_URL + logo_path if logo_path is not None else None,
        live_feed_url=fields.get("live_feed"),
        location=fields.get("location"),
        ctf_name=fields["ctf_name"],
    )


def parse_timestamp(value: str, field: str = "date") -> datetime:
    """Parse the compact UTC timestamps used by the feed, e.g. 20171020T100000."""
    value = value.strip()
    if not DATE_PATTERN.fullmatch(value):
        raise FeedDecodeError(f"bad timestamp {value!r}", field=field)
    try:
        return datetime.strptime(value + "+0000", DATE_FORMAT)
    except ValueError:
        raise FeedDecodeError(f"bad timestamp {value!r}", field=field) from None


def parse_bool(value: str) -> bool:
    """Only an explicit false is false; any other value counts as true."""
    return value not in ("false", "False")


def parse_organizers(value: str) -> tuple[Team, ...]:
    """Decode the JSON array of {"id", "name"} objects embedded in the feed."""
    try:
        raw = json.loads(value)
        return tuple(Team(id=int(t["id"]), name=str(t["name"])) for t in raw)
    except (ValueError, TypeError, KeyError) as e:
        raise FeedDecodeError(f"bad organizer list: {e}", field="organizers") from None


def _convert(kind: Callable[[str], T], value: str, field: str) -> T:
    try:
        return kind(value.strip())
    except ValueError:
        raise FeedDecodeError(f"expected {kind.__name__}, got {value!r}", field=field) from None


def _local_name(tag: str) -> str:
    """Strip an XML namespace, e.g. "{http://...}item" -> "item"."""
    return tag.rsplit("}", 1)[-1]
