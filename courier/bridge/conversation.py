"""
ConversationBridge — session-aware AI invocation for one conversation.

Owns the rules every caller must follow:
  - only one invocation per conversation at a time (InvocationGuard)
  - resume the stored session and store the one that comes back
  - a rejected resume token is dropped and the prompt retried exactly
    once without it
  - a reset waits for the invocation in flight
"""

from __future__ import annotations

import logging

from courier.bridge.base import AIBridge
from courier.bridge.guard import InvocationGuard
from courier.core.errors import StaleSessionError
from courier.core.types import BridgeReply
from courier.sessions.store import SessionStore

logger = logging.getLogger(__name__)


class ConversationBridge:
    """
    Usage:
        conversation = ConversationBridge(bridge, sessions, guard)

        text = await conversation.ask("spaces/AAAA", "hello")            # waits
        text = await conversation.ask_if_idle("spaces/AAAA", "check")    # None if busy
    """

    def __init__(
        self,
        bridge: AIBridge,
        sessions: SessionStore,
        guard: InvocationGuard,
    ) -> None:
        self._bridge = bridge
        self._sessions = sessions
        self._guard = guard

    async def ask(self, space_name: str, prompt: str) -> str:
        """Invoke the AI for an interactive message, waiting for the guard."""
        async with self._guard.hold(space_name):
            reply = await self._invoke_with_session(space_name, prompt)
        return reply.text

    async def ask_if_idle(self, space_name: str, prompt: str) -> str | None:
        """
        Invoke the AI only if nothing else is in flight for this conversation.

        Returns None when the guard is taken. The caller is expected to drop
        the work rather than retry early.
        """
        if self._guard.is_busy(space_name):
            logger.info(f"[{space_name}] invocation in flight, skipping")
            return None
        async with self._guard.hold(space_name):
            reply = await self._invoke_with_session(space_name, prompt)
        return reply.text

    async def reset(self, space_name: str) -> None:
        """
        Forget the conversation's session.

        Waits for any invocation in flight so its reply cannot store the
        old session again after the reset.
        """
        async with self._guard.hold(space_name):
            self._sessions.delete(space_name)
        logger.info(f"[{space_name}] session reset")

    async def _invoke_with_session(self, space_name: str, prompt: str) -> BridgeReply:
        session_id = self._sessions.get(space_name)
        try:
            reply = await self._bridge.invoke(prompt, resume_token=session_id)
        except StaleSessionError:
            if not session_id:
                raise
            logger.info(
                f"[{space_name}] session {session_id} is stale, retrying without resume"
            )
            self._sessions.delete(space_name)
            reply = await self._bridge.invoke(prompt, resume_token=None)

        if reply.session_id:
            self._sessions.set(space_name, reply.session_id)
        return reply
