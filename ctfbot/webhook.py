"""Incoming-webhook payloads (Mattermost/Slack message attachments)."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

import requests

from ctfbot.config import Config

USERNAME = "Upcoming CTFs"
INTRO_TEXT = "[Upcoming CTFs](https://ctftime.org/event/oldlist/upcoming)"


@dataclass(frozen=True)
class Attachment:
    """A message attachment, rendered as a colored card."""

    fallback: str
    title: str | None = None
    title_link: str | None = None
    text: str | None = None
    color: str | None = None
    thumb_url: str | None = None

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True)
class WebhookMessage:
    """The JSON body posted to the webhook endpoint."""

    text: str | None = None
    username: str | None = None
    channel: str | None = None
    icon_url: str | None = None
    attachments: list[Attachment] = field(default_factory=list)

    def to_dict(self) -> dict:
        data: dict = {
            k: v
            for k, v in (
                ("text", self.text),
                ("username", self.username),
                ("channel", self.channel),
                ("icon_url", self.icon_url),
            )
            if v is not None
        }
        if self.attachments:
            data["attachments"] = [a.to_dict() for a in self.attachments]
        return data


def build_message(attachments: list[Attachment], config: Config) -> WebhookMessage | None:
    """Wrap attachments in a message. Returns None when there is nothing to announce."""
    if not attachments:
        return None

    return WebhookMessage(
        text=INTRO_TEXT,
        username=USERNAME,
        channel=config.channel,
        icon_url=config.bot_icon,
        attachments=list(attachments),
    )


def send_message(webhook_url: str, message: WebhookMessage) -> None:
    """Post a message to the webhook. Raises requests.HTTPError on failure."""
    resp = requests.post(webhook_url, json=message.to_dict(), timeout=10)
    resp.raise_for_status()
