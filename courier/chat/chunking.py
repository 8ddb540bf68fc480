"""
Outbound message chunking.

Chat platforms cap message length. Long replies are split, preferring
the last newline at or before the limit; the newline at a split point is
consumed. With no usable newline the text is cut hard at the limit.
"""

from __future__ import annotations

MAX_MESSAGE_LENGTH = 4096


def split_message(text: str, max_len: int = MAX_MESSAGE_LENGTH) -> list[str]:
    """Split ``text`` into chunks of at most ``max_len`` characters."""
    if max_len < 1:
        raise ValueError("max_len must be at least 1")
    if len(text) <= max_len:
        return [text]

    chunks: list[str] = []
    remaining = text
    while remaining:
        if len(remaining) <= max_len:
            chunks.append(remaining)
            break
        split_at = remaining.rfind("\n", 0, max_len + 1)
        if split_at <= 0:
            chunks.append(remaining[:max_len])
            remaining = remaining[max_len:]
        else:
            chunks.append(remaining[:split_at])
            remaining = remaining[split_at + 1:]
    return chunks
