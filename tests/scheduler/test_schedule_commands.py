"""Tests for courier/scheduler/commands.py"""

from datetime import datetime, timezone

import pytest

from courier.scheduler.commands import USAGE, handle_schedule_command, is_schedule_command

NOW = datetime(2026, 10, 18, 8, 30, tzinfo=timezone.utc)
SPACE = "spaces/AAAA"


class TestIsScheduleCommand:
    @pytest.mark.parametrize(
        "text",
        ["/schedules", '/schedule "0 9 * * *" hi', "/schedule whatever", "/unschedule 3", "/unschedule x"],
    )
    def test_recognized(self, text):
        assert is_schedule_command(text)

    @pytest.mark.parametrize("text", ["/schedule", "/scheduled", "hello /schedules", "/reset", ""])
    def test_not_recognized(self, text):
        assert not is_schedule_command(text)


class TestCreate:
    def test_create_reply_and_persist(self, schedule_store):
        reply = handle_schedule_command(
            '/schedule "0 9 * * *" summarize my inbox', SPACE, schedule_store, now=NOW
        )
        assert reply == (
            "Schedule #1 created.\n"
            "Cron: `0 9 * * *`\n"
            "Prompt: summarize my inbox\n"
            "Next run: 2026-10-18T09:00:00+00:00"
        )
        job = schedule_store.get(1)
        assert job.space_name == SPACE
        assert job.prompt == "summarize my inbox"
        assert job.enabled

    def test_multiline_prompt(self, schedule_store):
        handle_schedule_command('/schedule "0 9 * * *" line one\nline two', SPACE, schedule_store, now=NOW)
        assert schedule_store.get(1).prompt == "line one\nline two"

    def test_invalid_cron(self, schedule_store):
        reply = handle_schedule_command('/schedule "every day" hi', SPACE, schedule_store, now=NOW)
        assert reply == "Invalid cron expression: `every day`"
        assert schedule_store.jobs == []

    def test_missing_quotes_shows_usage(self, schedule_store):
        reply = handle_schedule_command("/schedule 0 9 * * * hi", SPACE, schedule_store, now=NOW)
        assert reply == USAGE
        assert schedule_store.jobs == []

    def test_missing_prompt_shows_usage(self, schedule_store):
        reply = handle_schedule_command('/schedule "0 9 * * *"', SPACE, schedule_store, now=NOW)
        assert reply == USAGE


class TestList:
    def test_empty(self, schedule_store):
        assert handle_schedule_command("/schedules", SPACE, schedule_store) == (
            "No active schedules for this space."
        )

    def test_only_this_space(self, schedule_store):
        handle_schedule_command('/schedule "0 9 * * *" mine', SPACE, schedule_store, now=NOW)
        handle_schedule_command('/schedule "0 9 * * *" theirs', "spaces/BBBB", schedule_store, now=NOW)

        reply = handle_schedule_command("/schedules", SPACE, schedule_store)
        assert reply == "*#1* — `0 9 * * *` — mine\n  Next: 2026-10-18T09:00:00+00:00"

    def test_entries_separated_by_blank_line(self, schedule_store):
        handle_schedule_command('/schedule "0 9 * * *" a', SPACE, schedule_store, now=NOW)
        handle_schedule_command('/schedule "30 17 * * *" b', SPACE, schedule_store, now=NOW)
        reply = handle_schedule_command("/schedules", SPACE, schedule_store)
        first, second = reply.split("\n\n")
        assert first.startswith("*#1*")
        assert second.startswith("*#2* — `30 17 * * *` — b")


class TestDelete:
    def test_delete_own(self, schedule_store):
        handle_schedule_command('/schedule "0 9 * * *" a', SPACE, schedule_store, now=NOW)
        assert handle_schedule_command("/unschedule 1", SPACE, schedule_store) == "Schedule #1 deleted."
        assert schedule_store.jobs == []

    def test_cannot_delete_other_spaces_job(self, schedule_store):
        handle_schedule_command('/schedule "0 9 * * *" a', "spaces/BBBB", schedule_store, now=NOW)
        reply = handle_schedule_command("/unschedule 1", SPACE, schedule_store)
        assert reply == "Schedule #1 not found in this space."
        assert len(schedule_store.jobs) == 1

    def test_unknown_id(self, schedule_store):
        reply = handle_schedule_command("/unschedule 42", SPACE, schedule_store)
        assert reply == "Schedule #42 not found in this space."

    def test_non_numeric_id_shows_usage(self, schedule_store):
        assert handle_schedule_command("/unschedule abc", SPACE, schedule_store) == USAGE
