"""
Dispatcher — routes each inbound chat event.

    non-message / bot echo / empty  → ignored
    /reset                          → drop the conversation's session
    /schedule, /schedules, /unschedule → scheduler commands
    /telos [name]                   → context documents
    /heartbeat                      → heartbeat status
    anything else                   → AI, resuming the conversation's session

The AI prompt is the telos context, attachment notes and the user's text,
in that order, separated by blank lines.

Every accepted message gets 👀 before work starts, then ✅ or ❌.
Failures are reported back as "Error: ..." and never escape handle().
"""

from __future__ import annotations

import logging
from pathlib import Path

from courier.bridge.conversation import ConversationBridge
from courier.chat.attachments import process_attachments
from courier.chat.base import ChatTransport
from courier.context.library import ContextLibrary
from courier.core.types import ChatEvent
from courier.heartbeat.controller import HeartbeatController
from courier.scheduler.commands import handle_schedule_command, is_schedule_command
from courier.scheduler.store import SchedulerStore

logger = logging.getLogger(__name__)

RESET_REPLY = "Session reset. Next message starts a fresh conversation."
HEARTBEAT_OFF_REPLY = "Heartbeat is not configured."

REACT_SEEN = "👀"
REACT_DONE = "✅"
REACT_FAILED = "❌"


class Dispatcher:
    """
    Usage:
        dispatcher = Dispatcher(transport, conversation, schedules, library,
                                uploads_dir=Path("data/workspace/user-files"))
        await transport.listen(dispatcher.handle)
    """

    def __init__(
        self,
        transport: ChatTransport,
        conversation: ConversationBridge,
        schedules: SchedulerStore,
        library: ContextLibrary,
        uploads_dir: Path,
        heartbeat: HeartbeatController | None = None,
    ) -> None:
        self._transport = transport
        self._conversation = conversation
        self._schedules = schedules
        self._library = library
        self._uploads_dir = uploads_dir
        self._heartbeat = heartbeat

    async def handle(self, event: ChatEvent) -> None:
        if not event.is_human_message:
            return
        space = event.space_name
        if not space:
            return
        if not event.text and not event.attachments:
            return

        extra = f" [+{len(event.attachments)} attachment(s)]" if event.attachments else ""
        logger.info(f"[{space}] {event.sender_name}: {event.text[:100]}{extra}")

        await self._react(event, REACT_SEEN)
        try:
            reply = await self._route(event)
            await self._transport.send_message(space, reply)
            await self._react(event, REACT_DONE)
        except Exception as e:
            logger.exception(f"[{space}] error handling message: {e}")
            await self._react(event, REACT_FAILED)
            try:
                await self._transport.send_message(space, f"Error: {e}")
            except Exception as send_error:
                logger.warning(f"[{space}] could not deliver error: {send_error}")

    async def _route(self, event: ChatEvent) -> str:
        space = event.space_name
        text = event.text

        if text == "/reset":
            await self._conversation.reset(space)
            return RESET_REPLY

        if is_schedule_command(text):
            return handle_schedule_command(text, space, self._schedules)

        if text == "/telos":
            return self._library.summary()

        if text.startswith("/telos "):
            name = text[len("/telos "):].strip()
            content = self._library.read(name)
            if content is None:
                return f"TELOS file `{name}` not found."
            return content

        if text == "/heartbeat":
            if self._heartbeat is None:
                return HEARTBEAT_OFF_REPLY
            return self._heartbeat.status()

        return await self._ask(event)

    async def _ask(self, event: ChatEvent) -> str:
        notes = await process_attachments(event.attachments, self._transport, self._uploads_dir)
        prompt = build_prompt(self._library.load_context(), notes, event.text)
        return await self._conversation.ask(event.space_name, prompt)

    async def _react(self, event: ChatEvent, emoji: str) -> None:
        if not event.message_name:
            return
        try:
            await self._transport.react(event.message_name, emoji)
        except Exception as e:
            logger.warning(f"Reaction {emoji} failed: {e}")


def build_prompt(context: str, attachment_notes: str, text: str) -> str:
    """Join the non-empty parts with blank lines."""
    return "\n\n".join(part for part in (context, attachment_notes, text) if part)
