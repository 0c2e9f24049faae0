#!/usr/bin/env python3
"""
CTFtime Bot — Upcoming CTF Announcer

Fetches upcoming events from CTFtime, keeps the ones that are open to
everyone, playable online and starting soon, and posts a summary to a
Mattermost/Slack incoming webhook. Meant to be run from cron.

Usage:
    python post_upcoming.py              # Fetch, filter and post
    python post_upcoming.py --dry-run    # Print the payload without posting
    python post_upcoming.py --source rss # Read the RSS feed instead of the API
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime, timezone

import requests
from dotenv import find_dotenv, load_dotenv

from ctfbot import Event, FeedDecodeError
from ctfbot.api import fetch_upcoming_events
from ctfbot.config import FEED_SOURCES, ConfigError, load_config
from ctfbot.filters import select_events
from ctfbot.message import event_to_attachment
from ctfbot.rss import fetch_upcoming_feed
from ctfbot.webhook import build_message, send_message


def fetch_events(source: str) -> list[Event]:
    if source == "rss":
        return fetch_upcoming_feed()
    return fetch_upcoming_events()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Announce upcoming CTFs to a webhook.")
    parser.add_argument("--dry-run", action="store_true", help="print the payload, do not post")
    parser.add_argument("--source", choices=FEED_SOURCES, help="override FEED_SOURCE")
    args = parser.parse_args(argv)

    load_dotenv(find_dotenv(usecwd=True))
    try:
        config = load_config()
    except ConfigError as e:
        print(f"ERROR: {e}")
        return 1

    source = args.source or config.feed_source
    print(f"Fetching upcoming events from CTFtime ({source})...")
    try:
        events = fetch_events(source)
    except (requests.RequestException, FeedDecodeError) as e:
        print(f"  ERROR: Failed to fetch events: {e}")
        return 1
    print(f"  Found {len(events)} upcoming events")

    now = datetime.now(timezone.utc)
    selected = select_events(events, config, now)
    print(f"  {len(selected)} event(s) to announce")
    for event in selected:
        dt = event.start_time.astimezone(timezone.utc)
        print(f"    {dt.strftime('%Y-%m-%d %H:%M UTC')} {event.title}")

    message = build_message([event_to_attachment(e, config) for e in selected], config)
    if message is None:
        print("Nothing to announce — no message sent")
        return 0

    if args.dry_run:
        print(json.dumps(message.to_dict(), indent=2, ensure_ascii=False))
        return 0

    try:
        send_message(config.webhook_url, message)
    except requests.RequestException as e:
        print(f"  ERROR: Failed to post to webhook: {e}")
        return 1

    print(f"Posted {len(message.attachments)} event(s) to the webhook")
    return 0


if __name__ == "__main__":
    sys.exit(main())
