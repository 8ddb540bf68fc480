"""
SessionStore — conversation identity → AI session token.

File: data/sessions.json, a flat JSON object:

    {
      "spaces/AAAA": "3f1c2a9e-...",
      "spaces/BBBB": "77d0e4b1-..."
    }

Every mutation rewrites the whole file before returning, so a crash loses
at most the operation in flight. The file is written only by this class;
a file that does not parse is treated as fatal rather than reset.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from courier.core.errors import StorageError
from courier.core.files import write_atomic

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Write-through map of conversation sessions.

    Usage:
        store = SessionStore(Path("data/sessions.json"))
        store.load()

        store.set("spaces/AAAA", "3f1c2a9e")
        token = store.get("spaces/AAAA")
        store.delete("spaces/AAAA")
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._sessions: dict[str, str] = {}

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> None:
        """Load sessions from disk, creating an empty file if none exists."""
        if not self._path.exists():
            self._sessions = {}
            self._persist()
            logger.info(f"Created empty sessions file at {self._path}")
            return

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(f"Cannot read sessions from {self._path}: {e}") from e

        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            raise StorageError(
                f"Sessions file {self._path} must be an object of string tokens"
            )

        self._sessions = data
        logger.info(f"Loaded {len(self._sessions)} session(s)")

    def get(self, space_name: str) -> str | None:
        return self._sessions.get(space_name)

    def set(self, space_name: str, session_id: str) -> None:
        self._sessions[space_name] = session_id
        self._persist()

    def delete(self, space_name: str) -> None:
        """Forget the session for a conversation. Missing keys are fine."""
        self._sessions.pop(space_name, None)
        self._persist()

    def __len__(self) -> int:
        return len(self._sessions)

    def _persist(self) -> None:
        write_atomic(self._path, json.dumps(self._sessions, indent=2))
