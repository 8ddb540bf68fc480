"""Tests for courier/heartbeat/checklist.py"""

from datetime import datetime, timezone

import pytest

from courier.heartbeat.checklist import (
    MAX_OK_LENGTH,
    SENTINEL,
    build_prompt,
    is_heartbeat_ok,
    is_within_active_hours,
    load_checklist,
)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestActiveHours:
    def test_inside_window(self):
        # 18:00 UTC is 12:00 in Denver (MDT)
        assert is_within_active_hours(7, 23, "America/Denver", utc(2026, 10, 18, 18, 0))

    def test_before_start(self):
        # 12:00 UTC is 06:00 in Denver
        assert not is_within_active_hours(7, 23, "America/Denver", utc(2026, 10, 18, 12, 0))

    def test_start_is_inclusive(self):
        assert is_within_active_hours(7, 23, "America/Denver", utc(2026, 10, 18, 13, 0))

    def test_end_is_exclusive(self):
        assert is_within_active_hours(7, 23, "America/Denver", utc(2026, 10, 19, 4, 59))
        assert not is_within_active_hours(7, 23, "America/Denver", utc(2026, 10, 19, 5, 0))

    def test_naive_time_is_utc(self):
        assert is_within_active_hours(9, 10, "UTC", datetime(2026, 10, 18, 9, 30))

    def test_uses_current_time_by_default(self):
        assert is_within_active_hours(0, 24, "UTC")

    def test_empty_window(self):
        assert not is_within_active_hours(12, 12, "UTC", utc(2026, 10, 18, 12, 0))


class TestLoadChecklist:
    def test_missing_file(self, tmp_path):
        assert load_checklist(tmp_path / "heartbeat.md") is None

    def test_only_headers_and_rules(self, tmp_path):
        path = tmp_path / "heartbeat.md"
        path.write_text("# Heartbeat\n\n## Daily\n---\n***\n\n")
        assert load_checklist(path) is None

    def test_whitespace_only(self, tmp_path):
        path = tmp_path / "heartbeat.md"
        path.write_text("   \n\n")
        assert load_checklist(path) is None

    def test_returns_full_text(self, tmp_path):
        path = tmp_path / "heartbeat.md"
        path.write_text("\n# Heartbeat\n\n- Check the deploy queue\n")
        assert load_checklist(path) == "# Heartbeat\n\n- Check the deploy queue"


class TestBuildPrompt:
    def test_contains_checklist_and_sentinel(self):
        prompt = build_prompt("- Check the deploy queue")
        assert prompt.startswith("<heartbeat-check>")
        assert prompt.endswith("</heartbeat-check>")
        assert "- Check the deploy queue" in prompt
        assert f"respond with exactly: {SENTINEL}" in prompt

    def test_context_comes_first(self):
        prompt = build_prompt("- item", context="<telos-context>\ngoals\n</telos-context>")
        assert prompt.startswith("<telos-context>\ngoals\n</telos-context>\n\n<heartbeat-check>")


class TestIsHeartbeatOk:
    @pytest.mark.parametrize(
        "response",
        [
            "HEARTBEAT_OK",
            "  HEARTBEAT_OK  ",
            "HEARTBEAT_OK\n",
            "**HEARTBEAT_OK**",
            "`HEARTBEAT_OK`",
            "_HEARTBEAT_OK_",
            "# HEARTBEAT_OK",
            '"HEARTBEAT_OK"',
            "'HEARTBEAT_OK'",
        ],
    )
    def test_sentinel_variants(self, response):
        assert is_heartbeat_ok(response)

    @pytest.mark.parametrize(
        "response",
        [
            "",
            "HEARTBEAT OK",
            "HEARTBEAT_OK.",
            "All clear. HEARTBEAT_OK",
            "HEARTBEAT_OK\nbut the deploy queue is stuck",
            "heartbeat_ok",
        ],
    )
    def test_anything_else_is_an_alert(self, response):
        assert not is_heartbeat_ok(response)

    def test_long_response_never_counts(self):
        response = SENTINEL + " " * MAX_OK_LENGTH
        assert len(response) > MAX_OK_LENGTH
        assert not is_heartbeat_ok(response)

    def test_length_limit_is_inclusive(self):
        response = SENTINEL + " " * (MAX_OK_LENGTH - len(SENTINEL))
        assert len(response) == MAX_OK_LENGTH
        assert is_heartbeat_ok(response)
