"""
Transcript entries — the per-session JSONL log written by the AI process.

Each line is one JSON object. The fields this module relies on:

    type        "user" | "assistant" | "file-history-snapshot" | anything else
    uuid        unique id of the entry
    parentUuid  id of the causally preceding entry (null for a chain root)

Everything else on the line is carried through untouched in ``raw``.

The functions below are pure: lists of entries in, lists of entries out.
File handling lives in pruner.py.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from courier.core.errors import TranscriptError


class EntryKind(str, Enum):
    """Tag of a transcript entry."""

    USER = "user"
    ASSISTANT = "assistant"
    SNAPSHOT = "file-history-snapshot"
    OTHER = "other"

    @classmethod
    def of(cls, type_name: str) -> EntryKind:
        try:
            return cls(type_name)
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True, slots=True)
class TranscriptEntry:
    """One line of a transcript log."""

    kind: EntryKind
    id: str
    parent_id: str | None
    raw: dict[str, Any]

    @staticmethod
    def parse(line: str) -> TranscriptEntry:
        """
        Parse one JSONL line.

        Raises:
            TranscriptError: the line is not a JSON object with ``type`` and ``uuid``.
        """
        try:
            data = json.loads(line)
        except ValueError as e:
            raise TranscriptError(f"Unparseable transcript line: {e}") from e
        if not isinstance(data, dict):
            raise TranscriptError("Transcript line is not a JSON object")

        type_name = data.get("type")
        entry_id = data.get("uuid")
        if not type_name or not entry_id:
            raise TranscriptError("Transcript entry lacks 'type' or 'uuid'")

        return TranscriptEntry(
            kind=EntryKind.of(str(type_name)),
            id=str(entry_id),
            parent_id=data.get("parentUuid"),
            raw=data,
        )

    def with_parent(self, parent_id: str) -> TranscriptEntry:
        return replace(self, parent_id=parent_id, raw={**self.raw, "parentUuid": parent_id})

    def to_line(self) -> str:
        return json.dumps(self.raw, ensure_ascii=False, separators=(",", ":"))


def parse_transcript(content: str) -> list[TranscriptEntry]:
    """
    Parse a whole log. Blank lines are ignored; any bad line raises.

    Only a newline ends a record; U+2028, U+2029 and U+0085 may appear
    unescaped inside JSON strings.
    """
    return [TranscriptEntry.parse(line) for line in content.split("\n") if line.strip()]


def serialize_transcript(entries: list[TranscriptEntry]) -> str:
    """One entry per line, newline-terminated."""
    return "".join(entry.to_line() + "\n" for entry in entries)


def _last_index(entries: list[TranscriptEntry], kind: EntryKind) -> int:
    for i in range(len(entries) - 1, -1, -1):
        if entries[i].kind is kind:
            return i
    return -1


def exchange_indices(entries: list[TranscriptEntry]) -> set[int]:
    """
    Positions making up the most recent user/assistant exchange.

    That is the last "user" entry, the last "assistant" entry (found
    independently), and every snapshot entry at or after the earlier of
    the two. Empty if either kind is missing.
    """
    last_user = _last_index(entries, EntryKind.USER)
    last_assistant = _last_index(entries, EntryKind.ASSISTANT)
    if last_user == -1 or last_assistant == -1:
        return set()

    indices = {last_user, last_assistant}
    for i in range(min(last_user, last_assistant), len(entries)):
        if entries[i].kind is EntryKind.SNAPSHOT:
            indices.add(i)
    return indices


def repair_chain(entries: list[TranscriptEntry]) -> list[TranscriptEntry]:
    """
    Relink parent references so each entry points at its predecessor.

    The first entry is left alone, as is any entry without a parent
    reference (a chain root). Entries are not mutated; relinked ones are
    replaced by copies.
    """
    repaired: list[TranscriptEntry] = []
    for i, entry in enumerate(entries):
        if i > 0 and entry.parent_id and entry.parent_id != repaired[i - 1].id:
            entry = entry.with_parent(repaired[i - 1].id)
        repaired.append(entry)
    return repaired


def prune_last_exchange(
    entries: list[TranscriptEntry],
) -> tuple[list[TranscriptEntry], int]:
    """
    Drop the most recent exchange and repair the chain.

    Returns (new entries, number removed). When there is nothing to
    remove the input list is returned as-is with a count of 0.
    """
    indices = exchange_indices(entries)
    if not indices:
        return entries, 0
    kept = [entry for i, entry in enumerate(entries) if i not in indices]
    return repair_chain(kept), len(indices)
