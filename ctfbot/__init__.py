"""CTFtime bot — shared data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

BASE_URL = "https://ctftime.org"
USER_AGENT = "CTFtimeBot/1.0 (upcoming CTF webhook notifier)"


class FeedDecodeError(ValueError):
    """A feed record could not be turned into an Event."""

    def __init__(self, message: str, field: str | None = None) -> None:
        if field:
            message = f"{field}: {message}"
        super().__init__(message)
        self.field = field


class EventFormat(Enum):
    """Competition style, e.g. Jeopardy or Attack-Defense."""

    JEOPARDY = "Jeopardy"
    ATTACK_DEFENSE = "Attack-Defense"
    HACK_QUEST = "Hack-Quest"
    UNKNOWN = "Unknown"

    @property
    def display_name(self) -> str:
        return self.value

    @classmethod
    def from_code(cls, code: int) -> EventFormat:
        """Map the numeric code used by the RSS feed. Unknown codes are not errors."""
        return _FORMAT_CODES.get(code, cls.UNKNOWN)

    @classmethod
    def from_label(cls, label: str) -> EventFormat:
        """Map the label used by the JSON API. Unknown labels are errors."""
        try:
            return _FORMAT_LABELS[label]
        except KeyError:
            raise FeedDecodeError(f"Unknown format: {label!r}", field="format") from None


_FORMAT_CODES = {
    1: EventFormat.JEOPARDY,
    2: EventFormat.ATTACK_DEFENSE,
    3: EventFormat.HACK_QUEST,
}

_FORMAT_LABELS = {
    "Jeopardy": EventFormat.JEOPARDY,
    "Attack-Defense": EventFormat.ATTACK_DEFENSE,
    "Hack quest": EventFormat.HACK_QUEST,
    "": EventFormat.UNKNOWN,
}


class Restrictions(Enum):
    """Who may take part in an event."""

    OPEN = "Open"
    PREQUALIFIED = "Prequalified"
    ACADEMIC = "Academic"
    INVITED = "Invited"
    HIGH_SCHOOL = "High-school"

    @classmethod
    def parse(cls, literal: str) -> Restrictions:
        try:
            return cls(literal)
        except ValueError:
            raise FeedDecodeError(
                f"Unknown restrictions: {literal!r}", field="restrictions"
            ) from None


@dataclass(frozen=True)
class Team:
    """A CTFtime team, used for event organizers."""

    id: int
    name: str

    @property
    def profile_url(self) -> str:
        return f"{BASE_URL}/team/{self.id}"

    @property
    def markdown_link(self) -> str:
        return f"[{self.name}]({self.profile_url})"


@dataclass(frozen=True)
class Event:
    """A single scheduled instance of a CTF series, e.g. "FAUST CTF 2017"."""

    title: str
    origin_url: str
    start_time: datetime
    end_time: datetime
    format: EventFormat
    public_votable: bool
    weight: float
    restrictions: Restrictions
    onsite: bool
    ctf_id: int
    organizers: tuple[Team, ...] = field(default_factory=tuple)
    detail_url: str | None = None
    logo_url: str | None = None
    live_feed_url: str | None = None
    location: str | None = None
    event_id: int | None = None
    ctf_name: str | None = None
    participants: int | None = None

    @property
    def link(self) -> str:
        """Event page if the organizers published one, else the CTFtime page."""
        return self.detail_url or self.origin_url
