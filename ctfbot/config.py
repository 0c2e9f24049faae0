"""Bot configuration read from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

FEED_SOURCES = ("api", "rss")


class ConfigError(ValueError):
    """An environment variable is missing or cannot be parsed."""


@dataclass(frozen=True)
class Config:
    webhook_url: str
    lookahead_days: int = 21
    color_jeopardy: str = "#0099e1"
    color_attack_defense: str = "#da5422"
    bot_icon: str | None = None
    always_show_ctfs: frozenset[int] = field(default_factory=frozenset)
    channel: str | None = None
    feed_source: str = "api"


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    """Build a Config from the environment.

    Reads WEBHOOK_URL (required), DAYS_INTO_FUTURE, COLOR_JEOPARDY,
    COLOR_ATTACK_DEFENSE, BOT_ICON, ALWAYS_SHOW_CTFS, CHANNEL and
    FEED_SOURCE. Empty values are treated as unset.
    """
    env = os.environ if environ is None else environ

    def get(name: str) -> str | None:
        value = env.get(name, "").strip()
        return value or None

    webhook_url = get("WEBHOOK_URL")
    if not webhook_url:
        raise ConfigError("Missing required environment variable: WEBHOOK_URL")

    lookahead_days = 21
    raw_days = get("DAYS_INTO_FUTURE")
    if raw_days is not None:
        try:
            lookahead_days = int(raw_days)
        except ValueError:
            raise ConfigError(f"DAYS_INTO_FUTURE is not an integer: {raw_days!r}") from None

    feed_source = (get("FEED_SOURCE") or "api").lower()
    if feed_source not in FEED_SOURCES:
        raise ConfigError(f"FEED_SOURCE must be one of {FEED_SOURCES}, got {feed_source!r}")

    return Config(
        webhook_url=webhook_url,
        lookahead_days=lookahead_days,
        color_jeopardy=get("COLOR_JEOPARDY") or "#0099e1",
        color_attack_defense=get("COLOR_ATTACK_DEFENSE") or "#da5422",
        bot_icon=get("BOT_ICON"),
        always_show_ctfs=_parse_id_list(get("ALWAYS_SHOW_CTFS") or ""),
        channel=get("CHANNEL"),
        feed_source=feed_source,
    )


def _parse_id_list(value: str) -> frozenset[int]:
    """Parse a comma separated list of CTF series ids, ignoring blanks."""
    ids: set[int] = set()
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            ids.add(int(part))
        except ValueError:
            raise ConfigError(f"ALWAYS_SHOW_CTFS contains a non-numeric id: {part!r}") from None
    return frozenset(ids)
