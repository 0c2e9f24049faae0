"""Turn an Event into a webhook attachment."""

from __future__ import annotations

from datetime import timedelta

from ctfbot import Event, EventFormat, Restrictions
from ctfbot.config import Config
from ctfbot.webhook import Attachment

DATE_FORMAT = "%A, %Y-%m-%d %H:%M"


def format_duration(duration: timedelta) -> str:
    """Human readable duration, e.g. "2 days 6 hours" or "36 hours 30 minutes".

    Days are only used above 48 hours, so a 30 hour event reads as
    "30 hours" rather than "1 days 6 hours".
    """
    seconds = int(duration.total_seconds())
    parts: list[str] = []

    if int(seconds / 3600) > 48:
        days = int(seconds / 86400)
        parts.append(f"{days} days")
        seconds -= days * 86400
    hours = int(seconds / 3600)
    if hours > 0:
        parts.append(f"{hours} hours")
        seconds -= hours * 3600
    minutes = int(seconds / 60)
    if minutes > 0:
        parts.append(f"{minutes} minutes")
        seconds -= minutes * 60
    if seconds > 0:
        parts.append(f"{seconds} seconds")

    return " ".join(parts)


def event_to_attachment(event: Event, config: Config) -> Attachment:
    duration = format_duration(event.end_time - event.start_time)
    title = f"{event.title} — {event.format.display_name}"
    organizers = ", ".join(team.markdown_link for team in event.organizers)
    url = event.link
    local_start = event.start_time.astimezone()

    text = (
        f"**Date:** {local_start.strftime(DATE_FORMAT)} for {duration}\n"
        f"**Organizers:** {organizers}\n"
        f"[{url}]({url})\n\n"
    )
    if event.onsite and event.location is not None:
        text += f"**Location:** {event.location}\n"
    if event.restrictions == Restrictions.PREQUALIFIED:
        text += "Prequalified teams only\n"

    fallback = f"{title}\nDate: {local_start.replace(tzinfo=None)} for {duration}\n{url}"

    if event.format == EventFormat.ATTACK_DEFENSE:
        color = config.color_attack_defense
    else:
        color = config.color_jeopardy

    return Attachment(
        fallback=fallback,
        title=title,
        title_link=url,
        text=text.strip(),
        color=color,
        thumb_url=event.logo_url,
    )
