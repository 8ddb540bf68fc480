"""
Schedule commands — the chat-facing interpreter.

    /schedule "<cron>" <prompt>   create a job
    /schedules                    list this conversation's jobs
    /unschedule <id>              delete one of this conversation's jobs
"""

from __future__ import annotations

import logging
import re
from datetime import datetime

from courier.scheduler.store import SchedulerStore
from courier.scheduler.triggers import next_occurrence, utcnow

logger = logging.getLogger(__name__)

USAGE = 'Usage: `/schedule "<cron>" <prompt>` or `/schedules` or `/unschedule <id>`'

_SCHEDULE_RE = re.compile(r'^/schedule\s+"([^"]+)"\s+(.+)$', re.DOTALL)
_UNSCHEDULE_RE = re.compile(r"^/unschedule\s+(\d+)$")


def is_schedule_command(text: str) -> bool:
    return (
        text == "/schedules"
        or text.startswith("/schedule ")
        or text.startswith("/unschedule ")
    )


def handle_schedule_command(
    command: str,
    space_name: str,
    store: SchedulerStore,
    now: datetime | None = None,
) -> str:
    """Run one schedule command and return the reply text."""
    trimmed = command.strip()

    if trimmed == "/schedules":
        return _list(store, space_name)

    match = _UNSCHEDULE_RE.match(trimmed)
    if match:
        job_id = int(match.group(1))
        if not store.remove(job_id, space_name):
            return f"Schedule #{job_id} not found in this space."
        logger.info(f"[{space_name}] schedule #{job_id} deleted")
        return f"Schedule #{job_id} deleted."

    match = _SCHEDULE_RE.match(trimmed)
    if match:
        cron, prompt = match.group(1), match.group(2).strip()
        try:
            next_run = next_occurrence(cron, after=now or utcnow())
        except ValueError:
            return f"Invalid cron expression: `{cron}`"
        job = store.add(cron, prompt, space_name, next_run)
        logger.info(f"[{space_name}] schedule #{job.id} created: {cron}")
        return (
            f"Schedule #{job.id} created.\n"
            f"Cron: `{cron}`\n"
            f"Prompt: {prompt}\n"
            f"Next run: {job.next_run.isoformat()}"
        )

    return USAGE


def _list(store: SchedulerStore, space_name: str) -> str:
    jobs = store.for_space(space_name)
    if not jobs:
        return "No active schedules for this space."
    return "\n\n".join(
        f"*#{job.id}* — `{job.cron}` — {job.prompt}\n  Next: {job.next_run.isoformat()}"
        for job in jobs
    )
