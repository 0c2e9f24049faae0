"""Tests for configuration loading and the post_upcoming entry script."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import requests

import post_upcoming
from ctfbot.api import parse_api_events
from ctfbot.config import Config, ConfigError, load_config

FIXTURE_DIR = Path(__file__).parent / "fixtures"

WEBHOOK = "https://chat.example.com/hooks/abc"


# --- Config tests ---


class TestConfig:
    def test_defaults(self) -> None:
        config = load_config({"WEBHOOK_URL": WEBHOOK})
        assert config == Config(webhook_url=WEBHOOK)
        assert config.lookahead_days == 21
        assert config.color_jeopardy == "#0099e1"
        assert config.color_attack_defense == "#da5422"
        assert config.bot_icon is None
        assert config.channel is None
        assert config.always_show_ctfs == frozenset()
        assert config.feed_source == "api"

    def test_all_variables(self) -> None:
        config = load_config({
            "WEBHOOK_URL": WEBHOOK,
            "DAYS_INTO_FUTURE": "7",
            "COLOR_JEOPARDY": "#111111",
            "COLOR_ATTACK_DEFENSE": "#222222",
            "BOT_ICON": "https://example.com/bot.png",
            "ALWAYS_SHOW_CTFS": "98, 85,,",
            "CHANNEL": "ctf-announcements",
            "FEED_SOURCE": "RSS",
        })
        assert config.lookahead_days == 7
        assert config.color_jeopardy == "#111111"
        assert config.color_attack_defense == "#222222"
        assert config.bot_icon == "https://example.com/bot.png"
        assert config.always_show_ctfs == frozenset({98, 85})
        assert config.channel == "ctf-announcements"
        assert config.feed_source == "rss"

    def test_missing_webhook(self) -> None:
        with pytest.raises(ConfigError, match="WEBHOOK_URL"):
            load_config({})

    def test_empty_values_are_unset(self) -> None:
        config = load_config({"WEBHOOK_URL": WEBHOOK, "BOT_ICON": "", "CHANNEL": "  "})
        assert config.bot_icon is None
        assert config.channel is None

    def test_bad_days(self) -> None:
        with pytest.raises(ConfigError, match="DAYS_INTO_FUTURE"):
            load_config({"WEBHOOK_URL": WEBHOOK, "DAYS_INTO_FUTURE": "three"})

    def test_bad_id_list(self) -> None:
        with pytest.raises(ConfigError, match="ALWAYS_SHOW_CTFS"):
            load_config({"WEBHOOK_URL": WEBHOOK, "ALWAYS_SHOW_CTFS": "98,faust"})

    def test_bad_feed_source(self) -> None:
        with pytest.raises(ConfigError, match="FEED_SOURCE"):
            load_config({"WEBHOOK_URL": WEBHOOK, "FEED_SOURCE": "atom"})

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WEBHOOK_URL", WEBHOOK)
        monkeypatch.setenv("DAYS_INTO_FUTURE", "14")
        assert load_config().lookahead_days == 14


# --- Entry script tests ---


@pytest.fixture
def env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> pytest.MonkeyPatch:
    # keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)
    for name in ("DAYS_INTO_FUTURE", "ALWAYS_SHOW_CTFS", "CHANNEL", "BOT_ICON", "FEED_SOURCE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("WEBHOOK_URL", WEBHOOK)
    return monkeypatch


@pytest.fixture
def api_events():
    return parse_api_events((FIXTURE_DIR / "ctftime_events.json").read_text())


class TestPostUpcoming:
    def test_posts_selected_events(self, env, api_events, capsys) -> None:
        # GreHack is onsite, only shown because its series is listed
        env.setenv("ALWAYS_SHOW_CTFS", "85")
        posted = []
        env.setattr(post_upcoming, "fetch_events", lambda source: api_events)
        env.setattr(post_upcoming, "send_message", lambda url, msg: posted.append((url, msg)))

        assert post_upcoming.main([]) == 0

        assert len(posted) == 1
        url, message = posted[0]
        assert url == WEBHOOK
        assert [a.title for a in message.attachments] == [
            "FAUST CTF 2017 — Attack-Defense",
            "GreHack CTF 2017 — Jeopardy",
        ]
        assert "Posted 2 event(s)" in capsys.readouterr().out

    def test_nothing_to_announce_sends_nothing(self, env, api_events, capsys) -> None:
        # onsite GreHack and high-school School CTF
        posted = []
        env.setattr(post_upcoming, "fetch_events", lambda source: api_events[1:])
        env.setattr(post_upcoming, "send_message", lambda url, msg: posted.append(msg))

        assert post_upcoming.main([]) == 0
        assert posted == []
        assert "Nothing to announce" in capsys.readouterr().out

    def test_dry_run_prints_payload(self, env, api_events, capsys) -> None:
        env.setattr(post_upcoming, "fetch_events", lambda source: api_events)

        def fail(url, msg):
            raise AssertionError("dry run must not post")

        env.setattr(post_upcoming, "send_message", fail)

        assert post_upcoming.main(["--dry-run"]) == 0
        out = capsys.readouterr().out
        payload = json.loads(out[out.index("{"):])
        assert payload["username"] == "Upcoming CTFs"
        assert payload["attachments"][0]["color"] == "#da5422"

    def test_source_flag(self, env) -> None:
        sources = []

        def fake_fetch(source):
            sources.append(source)
            return []

        env.setattr(post_upcoming, "fetch_events", fake_fetch)
        assert post_upcoming.main(["--source", "rss"]) == 0
        assert sources == ["rss"]

    def test_fetch_failure(self, env, capsys) -> None:
        def boom(source):
            raise requests.ConnectionError("ctftime.org unreachable")

        env.setattr(post_upcoming, "fetch_events", boom)
        assert post_upcoming.main([]) == 1
        assert "Failed to fetch events" in capsys.readouterr().out

    def test_post_failure(self, env, api_events, capsys) -> None:
        def boom(url, msg):
            raise requests.HTTPError("500 Server Error")

        env.setattr(post_upcoming, "fetch_events", lambda source: api_events)
        env.setattr(post_upcoming, "send_message", boom)
        assert post_upcoming.main([]) == 1
        assert "Failed to post" in capsys.readouterr().out

    def test_missing_config(self, env, capsys) -> None:
        env.delenv("WEBHOOK_URL")
        assert post_upcoming.main([]) == 1
        assert "WEBHOOK_URL" in capsys.readouterr().out
