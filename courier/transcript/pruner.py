"""
TranscriptPruner — removes a suppressed heartbeat exchange from the log.

Log location for a session:
    <transcripts_root>/<workdir with "/" replaced by "-">/<session_id>.jsonl

Pruning is cleanup, not correctness: every failure is logged and
swallowed. A log that does not fully parse is left exactly as it was.
"""

from __future__ import annotations

import logging
from pathlib import Path

from courier.core.errors import TranscriptError
from courier.core.files import write_atomic
from courier.sessions.store import SessionStore
from courier.transcript.entries import (
    parse_transcript,
    prune_last_exchange,
    serialize_transcript,
)

logger = logging.getLogger(__name__)


def project_slug(workdir: Path) -> str:
    """The directory name the AI process uses for a working directory."""
    return str(workdir).replace("/", "-")


class TranscriptPruner:
    """
    Usage:
        pruner = TranscriptPruner(sessions, Path("~/.claude/projects").expanduser())
        removed = pruner.prune("spaces/AAAA")
    """

    def __init__(
        self,
        sessions: SessionStore,
        transcripts_root: Path,
        workdir: Path | None = None,
    ) -> None:
        self._sessions = sessions
        self._root = transcripts_root
        self._workdir = workdir or Path.cwd()

    def transcript_path(self, session_id: str) -> Path:
        return self._root / project_slug(self._workdir) / f"{session_id}.jsonl"

    def prune(self, space_name: str) -> int:
        """
        Remove the latest exchange from the conversation's transcript.

        Returns the number of entries removed (0 when nothing was done).
        Never raises.
        """
        try:
            return self._prune(space_name)
        except TranscriptError as e:
            logger.warning(f"[{space_name}] transcript left untouched: {e}")
        except Exception as e:
            logger.error(f"[{space_name}] transcript prune failed (non-fatal): {e}")
        return 0

    def _prune(self, space_name: str) -> int:
        session_id = self._sessions.get(space_name)
        if not session_id:
            return 0

        path = self.transcript_path(session_id)
        if not path.exists():
            logger.debug(f"[{space_name}] no transcript at {path}")
            return 0

        entries = parse_transcript(path.read_text(encoding="utf-8"))
        pruned, removed = prune_last_exchange(entries)
        if not removed:
            return 0

        write_atomic(path, serialize_transcript(pruned))
        logger.info(f"[{space_name}] pruned {removed} transcript entries")
        return removed
