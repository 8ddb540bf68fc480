"""
HeartbeatController — periodic checklist review for one conversation.

Each tick:
    active window? → checklist? → prompt → AI (skip if busy) → classify
        HEARTBEAT_OK  → send nothing, prune the exchange from the transcript
        anything else → deliver the full response

The tick goes through ConversationBridge.ask_if_idle, so an interactive
message in flight always wins: the tick is dropped, not queued.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable

from courier.bridge.conversation import ConversationBridge
from courier.context.library import ContextLibrary
from courier.core.config import HeartbeatConfig
from courier.heartbeat.checklist import (
    build_prompt,
    is_heartbeat_ok,
    is_within_active_hours,
    load_checklist,
)
from courier.transcript.pruner import TranscriptPruner

logger = logging.getLogger(__name__)

SendFn = Callable[[str, str], Awaitable[None]]


class TickOutcome(str, Enum):
    """What a single heartbeat tick ended up doing."""

    OUTSIDE_WINDOW = "outside_window"
    NO_CHECKLIST = "no_checklist"
    BUSY = "busy"
    SUPPRESSED = "suppressed"
    DELIVERED = "delivered"
    FAILED = "failed"


class HeartbeatController:
    """
    Usage:
        controller = HeartbeatController(config, conversation, send, pruner,
                                          checklist_path=Path("data/heartbeat.md"))
        await controller.start()
        ...
        print(controller.status())
        await controller.stop()
    """

    def __init__(
        self,
        config: HeartbeatConfig,
        conversation: ConversationBridge,
        send: SendFn,
        pruner: TranscriptPruner,
        checklist_path: Path,
        library: ContextLibrary | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config
        self._conversation = conversation
        self._send = send
        self._pruner = pruner
        self._checklist_path = checklist_path
        self._library = library
        self._clock = clock
        self._task: asyncio.Task | None = None
        self._running = False
        self.last_outcome: TickOutcome | None = None

    @property
    def space_name(self) -> str:
        return self._config.space

    def in_active_window(self) -> bool:
        now = self._clock() if self._clock else None
        return is_within_active_hours(
            self._config.active_start,
            self._config.active_end,
            self._config.timezone,
            now,
        )

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def start(self) -> None:
        self._running = True
        self._task = asyncio.create_task(self._loop(), name="heartbeat")
        logger.info(
            f"Heartbeat started ({self._config.interval_minutes}m interval, "
            f"active {self._config.active_start}-{self._config.active_end} "
            f"{self._config.timezone})"
        )

    async def stop(self) -> None:
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Heartbeat stopped")

    async def _loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._config.interval_seconds)
            await self.tick()

    # ── Tick ──────────────────────────────────────────────────────────────────

    async def tick(self) -> TickOutcome:
        """Run one heartbeat check. Never raises."""
        try:
            outcome = await self._tick()
        except Exception as e:
            logger.error(f"[heartbeat] tick error: {e}")
            outcome = TickOutcome.FAILED
        self.last_outcome = outcome
        return outcome

    async def _tick(self) -> TickOutcome:
        space = self._config.space

        if not self.in_active_window():
            logger.info("[heartbeat] outside active hours, skipping")
            return TickOutcome.OUTSIDE_WINDOW

        checklist = load_checklist(self._checklist_path)
        if not checklist:
            logger.info("[heartbeat] no checklist or empty, skipping")
            return TickOutcome.NO_CHECKLIST

        context = self._library.load_context() if self._library else ""
        prompt = build_prompt(checklist, context)

        logger.info("[heartbeat] running check...")
        response = await self._conversation.ask_if_idle(space, prompt)
        if response is None:
            logger.info("[heartbeat] skipped (conversation busy)")
            return TickOutcome.BUSY

        logger.info(f"[heartbeat] response: {response[:300]!r}")
        if is_heartbeat_ok(response):
            logger.info("[heartbeat] OK, suppressing message")
            self._pruner.prune(space)
            return TickOutcome.SUPPRESSED

        logger.info("[heartbeat] alert, delivering message")
        await self._send(space, response)
        return TickOutcome.DELIVERED

    # ── Status ────────────────────────────────────────────────────────────────

    def status(self) -> str:
        """Chat-formatted summary of the heartbeat configuration and state."""
        checklist = load_checklist(self._checklist_path)
        lines = [
            "*Heartbeat Status*",
            f"Space: `{self._config.space}`",
            f"Interval: {self._config.interval_minutes} minutes",
            f"Active hours: {self._config.active_start}:00–{self._config.active_end}:00 "
            f"{self._config.timezone}",
            f"Currently active: {'yes' if self.in_active_window() else 'no'}",
            f"Checklist: {'loaded' if checklist else 'empty or missing'}",
        ]
        return "\n".join(lines)
