"""
SchedulerEngine — the background asyncio task that fires jobs.

Design:
- Polls the store every poll_interval seconds
- For each due job: runs the prompt through a fresh, stateless AI
  invocation (no resume) and sends the text to the job's conversation
- A failed run is reported to the conversation; the job still advances
  to its next natural occurrence rather than retrying early
- A job whose cron no longer parses is disabled, never deleted
- The list is written once per pass, only if something changed
- No missed-job replay: a job that came due while the process was down
  fires once on the first pass, then advances from that moment
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable

from courier.bridge.base import AIBridge
from courier.bridge.guard import InvocationGuard
from courier.scheduler.job import ScheduledJob
from courier.scheduler.store import SchedulerStore
from courier.scheduler.triggers import next_occurrence, utcnow

logger = logging.getLogger(__name__)

SendFn = Callable[[str, str], Awaitable[None]]

POLL_INTERVAL = 60   # seconds between due-job checks


class SchedulerEngine:
    """
    Background scheduler.

    Scheduled runs wait for the conversation's InvocationGuard like an
    interactive message does, so they never overlap another invocation
    for the same conversation.
    """

    def __init__(
        self,
        store: SchedulerStore,
        bridge: AIBridge,
        guard: InvocationGuard,
        send: SendFn,
        poll_interval: float = POLL_INTERVAL,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._bridge = bridge
        self._guard = guard
        self._send = send
        self._poll_interval = poll_interval
        self._clock = clock
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background polling loop."""
        self._running = True
        self._task = asyncio.create_task(self._loop(), name="scheduler")
        logger.info(f"Scheduler started ({self._poll_interval:g}s poll)")

    async def stop(self) -> None:
        """Gracefully stop the background loop."""
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Scheduler stopped")

    # ── Internal loop ─────────────────────────────────────────────────────────

    async def _loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._poll_interval)
            try:
                await self.tick()
            except Exception as e:
                logger.warning(f"Scheduler tick error (non-fatal): {e}")

    async def tick(self) -> int:
        """Fire every due job once. Returns the number of jobs fired."""
        now = self._clock()
        due_jobs = self._store.due(now)
        if not due_jobs:
            return 0

        for job in due_jobs:
            await self._fire_job(job)
            self._advance(job, self._clock())

        self._store.persist()
        return len(due_jobs)

    async def _fire_job(self, job: ScheduledJob) -> None:
        logger.info(f"Running schedule #{job.id}: {job.prompt[:100]}")
        try:
            async with self._guard.hold(job.space_name):
                reply = await self._bridge.invoke(job.prompt, resume_token=None)
            await self._send(job.space_name, reply.text)
        except Exception as e:
            msg = f"Schedule #{job.id} failed: {e}"
            logger.error(msg)
            try:
                await self._send(job.space_name, msg)
            except Exception as send_error:
                logger.warning(f"Could not report failure of #{job.id}: {send_error}")

    def _advance(self, job: ScheduledJob, fired_at: datetime) -> None:
        try:
            job.next_run = next_occurrence(job.cron, after=fired_at)
            logger.debug(f"Schedule #{job.id} next run {job.next_run.isoformat()}")
        except ValueError:
            job.enabled = False
            logger.warning(f"Schedule #{job.id} has an invalid cron ({job.cron!r}), disabled")
