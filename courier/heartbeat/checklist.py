"""
Heartbeat checklist helpers.

    is_within_active_hours(7, 23, "America/Denver")
    load_checklist(Path("data/heartbeat.md"))     # None if missing or empty
    build_prompt(checklist)
    is_heartbeat_ok(response)
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

import pytz

SENTINEL = "HEARTBEAT_OK"
MAX_OK_LENGTH = 300

_HEADER_RE = re.compile(r"^#+\s.*$", re.MULTILINE)
_RULE_RE = re.compile(r"^[-*_]{3,}\s*$", re.MULTILINE)
_DECORATION_RE = re.compile(r"[*`#\"'\n\r]")

PROMPT_TEMPLATE = """<heartbeat-check>
You are running a periodic heartbeat check. Review the checklist below and check if any items need attention RIGHT NOW.

If NOTHING needs immediate attention, respond with exactly: {sentinel}
If something needs attention, respond with a brief summary of what needs action.

Do not be overly cautious — only flag items that genuinely need attention now.

{checklist}
</heartbeat-check>"""


def local_hour(timezone: str, now: datetime | None = None) -> int:
    tz = pytz.timezone(timezone)
    if now is None:
        return datetime.now(tz).hour
    if now.tzinfo is None:
        now = pytz.utc.localize(now)
    return now.astimezone(tz).hour


def is_within_active_hours(
    start: int,
    end: int,
    timezone: str,
    now: datetime | None = None,
) -> bool:
    """start <= local hour < end in ``timezone``."""
    hour = local_hour(timezone, now)
    return start <= hour < end


def load_checklist(path: Path) -> str | None:
    """
    Read the checklist, or None if it is missing or only decoration.

    Headers and horizontal rules do not count as content.
    """
    if not path.exists():
        return None
    raw = path.read_text(encoding="utf-8")
    stripped = _RULE_RE.sub("", _HEADER_RE.sub("", raw)).strip()
    if not stripped:
        return None
    return raw.strip()


def build_prompt(checklist: str, context: str = "") -> str:
    prompt = PROMPT_TEMPLATE.format(sentinel=SENTINEL, checklist=checklist)
    return "\n\n".join(part for part in (context, prompt) if part)


def is_heartbeat_ok(response: str) -> bool:
    """
    True if the response is the sentinel and nothing else.

    Markdown emphasis, backticks, header hashes, quotes and newlines are
    ignored. Responses longer than MAX_OK_LENGTH never count, even when
    they contain the sentinel.
    """
    if len(response) > MAX_OK_LENGTH:
        return False
    # Underscore emphasis is only trimmed from the ends; the sentinel has one.
    cleaned = _DECORATION_RE.sub("", response).strip().strip("_").strip()
    return cleaned == SENTINEL
