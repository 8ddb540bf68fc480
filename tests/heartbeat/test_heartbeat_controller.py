"""Tests for courier/heartbeat/controller.py"""

import asyncio
import json
from datetime import datetime, timezone

import pytest

from courier.core.config import HeartbeatConfig
from courier.core.errors import BridgeError
from courier.heartbeat.controller import HeartbeatController, TickOutcome
from courier.transcript.pruner import TranscriptPruner

SPACE = "spaces/AAAA"
NOON = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
NIGHT = datetime(2026, 10, 18, 3, 0, tzinfo=timezone.utc)


class FastHeartbeatConfig(HeartbeatConfig):
    @property
    def interval_seconds(self) -> float:
        return 0.01


def _line(type_, uuid, parent):
    return json.dumps({"type": type_, "uuid": uuid, "parentUuid": parent})


@pytest.fixture
def checklist_path(tmp_path):
    path = tmp_path / "heartbeat.md"
    path.write_text("# Heartbeat\n- Check the deploy queue\n")
    return path


@pytest.fixture
def pruner(sessions, tmp_path):
    return TranscriptPruner(sessions, tmp_path / "projects", workdir=tmp_path / "work")


@pytest.fixture
def make_controller(conversation, transport, pruner, checklist_path, library):
    def _make(now=NOON, **overrides):
        hb = HeartbeatConfig(space=SPACE, timezone="UTC", **overrides)
        return HeartbeatController(
            config=hb,
            conversation=conversation,
            send=transport.send_message,
            pruner=pruner,
            checklist_path=checklist_path,
            library=library,
            clock=lambda: now,
        )

    return _make


@pytest.mark.asyncio
class TestTick:
    async def test_outside_window_does_nothing(self, make_controller, bridge, transport):
        controller = make_controller(now=NIGHT)
        assert await controller.tick() is TickOutcome.OUTSIDE_WINDOW
        assert bridge.call_count == 0
        assert transport.sent == []

    async def test_missing_checklist(self, make_controller, bridge, checklist_path):
        checklist_path.unlink()
        assert await make_controller().tick() is TickOutcome.NO_CHECKLIST
        assert bridge.call_count == 0

    async def test_decoration_only_checklist(self, make_controller, bridge, checklist_path):
        checklist_path.write_text("# Heartbeat\n---\n")
        assert await make_controller().tick() is TickOutcome.NO_CHECKLIST
        assert bridge.call_count == 0

    async def test_alert_is_delivered(self, make_controller, bridge, transport):
        bridge.set_reply("The deploy queue has 3 stuck jobs.")
        controller = make_controller()

        assert await controller.tick() is TickOutcome.DELIVERED
        assert transport.texts(SPACE) == ["The deploy queue has 3 stuck jobs."]
        assert controller.last_outcome is TickOutcome.DELIVERED

    async def test_prompt_resumes_conversation(self, make_controller, bridge, sessions):
        sessions.set(SPACE, "existing")
        bridge.set_reply("alert", session_id="existing")

        await make_controller().tick()
        prompt, token = bridge.calls[0]
        assert token == "existing"
        assert "<heartbeat-check>" in prompt
        assert "- Check the deploy queue" in prompt

    async def test_context_is_prepended(self, make_controller, bridge, library):
        library.directory.mkdir()
        (library.directory / "goals.md").write_text("Ship v2")
        bridge.set_reply("alert")

        await make_controller().tick()
        prompt, _ = bridge.calls[0]
        assert prompt.startswith("<telos-context>\nShip v2\n</telos-context>\n\n<heartbeat-check>")

    async def test_ok_is_suppressed_and_pruned(
        self, make_controller, bridge, transport, sessions, pruner
    ):
        sessions.set(SPACE, "s1")
        path = pruner.transcript_path("s1")
        path.parent.mkdir(parents=True)
        path.write_text(
            "\n".join(
                [
                    _line("user", "u1", None),
                    _line("assistant", "a1", "u1"),
                    _line("user", "u2", "a1"),
                    _line("assistant", "a2", "u2"),
                ]
            )
            + "\n"
        )
        bridge.set_reply("**HEARTBEAT_OK**", session_id="s1")

        assert await make_controller().tick() is TickOutcome.SUPPRESSED
        assert transport.sent == []
        ids = [json.loads(line)["uuid"] for line in path.read_text().splitlines()]
        assert ids == ["u1", "a1"]

    async def test_ok_without_transcript_is_still_suppressed(self, make_controller, bridge, transport):
        bridge.set_reply("HEARTBEAT_OK")
        assert await make_controller().tick() is TickOutcome.SUPPRESSED
        assert transport.sent == []

    async def test_busy_conversation_skips(self, make_controller, bridge, guard, transport):
        async with guard.hold(SPACE):
            assert await make_controller().tick() is TickOutcome.BUSY
        assert bridge.call_count == 0
        assert transport.sent == []

    async def test_other_conversation_busy_does_not_block(self, make_controller, bridge, guard):
        bridge.set_reply("alert")
        async with guard.hold("spaces/OTHER"):
            assert await make_controller().tick() is TickOutcome.DELIVERED

    async def test_bridge_failure_never_raises(self, make_controller, bridge, transport):
        bridge.set_error(BridgeError("AI process failed: boom"))
        controller = make_controller()

        assert await controller.tick() is TickOutcome.FAILED
        assert transport.sent == []
        assert controller.last_outcome is TickOutcome.FAILED


@pytest.mark.asyncio
class TestLifecycle:
    async def test_loop_ticks_until_stopped(
        self, conversation, bridge, transport, pruner, checklist_path
    ):
        controller = HeartbeatController(
            config=FastHeartbeatConfig(space=SPACE, timezone="UTC"),
            conversation=conversation,
            send=transport.send_message,
            pruner=pruner,
            checklist_path=checklist_path,
            clock=lambda: NOON,
        )
        bridge.set_reply("alert")

        await controller.start()
        for _ in range(50):
            if transport.sent:
                break
            await asyncio.sleep(0.01)
        await controller.stop()

        assert transport.texts(SPACE)[0] == "alert"


class TestStatus:
    def test_status_lines(self, make_controller):
        status = make_controller(interval_minutes=15).status()
        assert status.splitlines() == [
            "*Heartbeat Status*",
            f"Space: `{SPACE}`",
            "Interval: 15 minutes",
            "Active hours: 7:00–23:00 UTC",
            "Currently active: yes",
            "Checklist: loaded",
        ]

    def test_status_outside_window_without_checklist(self, make_controller, checklist_path):
        checklist_path.unlink()
        status = make_controller(now=NIGHT).status()
        assert "Currently active: no" in status
        assert "Checklist: empty or missing" in status
