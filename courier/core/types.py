"""
Courier shared types — the data objects that cross component boundaries.

All types are dataclasses. Frozen where immutability makes sense.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Inbound Chat Events
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

MESSAGE_EVENT = "MESSAGE"
BOT_SENDER = "BOT"


@dataclass(frozen=True, slots=True)
class Attachment:
    """An uploaded file referenced by a chat message."""

    content_name: str = "attachment"
    content_type: str = ""
    resource_name: str = ""

    @staticmethod
    def from_dict(data: Any) -> Attachment:
        data = _as_dict(data)
        ref = _as_dict(data.get("attachmentDataRef"))
        return Attachment(
            content_name=_as_str(data.get("contentName")) or "attachment",
            content_type=_as_str(data.get("contentType")),
            resource_name=_as_str(ref.get("resourceName")),
        )


@dataclass(frozen=True, slots=True)
class ChatEvent:
    """
    One event delivered by the chat platform.

    Only the fields the dispatcher needs are kept. ``text`` prefers the
    mention-stripped argument text over the raw message text.
    """

    type: str
    space_name: str = ""
    message_name: str = ""
    sender_name: str = ""
    sender_type: str = ""
    text: str = ""
    attachments: tuple[Attachment, ...] = ()

    @property
    def is_human_message(self) -> bool:
        return self.type == MESSAGE_EVENT and self.sender_type != BOT_SENDER

    @staticmethod
    def from_dict(data: Any) -> ChatEvent:
        """Build an event from a decoded payload. Fields of the wrong shape read as empty."""
        data = _as_dict(data)
        space = _as_dict(data.get("space"))
        message = _as_dict(data.get("message"))
        sender = _as_dict(message.get("sender"))
        text = message.get("argumentText")
        if not isinstance(text, str):
            text = _as_str(message.get("text"))
        attachments = message.get("attachment")
        if not isinstance(attachments, list):
            attachments = []
        return ChatEvent(
            type=_as_str(data.get("type")),
            space_name=_as_str(space.get("name")),
            message_name=_as_str(message.get("name")),
            sender_name=_as_str(sender.get("displayName")) or _as_str(sender.get("name")),
            sender_type=_as_str(sender.get("type")),
            text=text.strip(),
            attachments=tuple(Attachment.from_dict(a) for a in attachments),
        )


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# AI Bridge
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


@dataclass(frozen=True, slots=True)
class BridgeReply:
    """Final output of one AI invocation."""

    text: str
    session_id: str | None = None
    duration_ms: int = 0
    raw: dict[str, Any] = field(default_factory=dict, compare=False)
