"""
AI bridge interface — the contract for the external AI process.

Callers never spawn processes themselves. They hand a prompt and an
optional resume token to an AIBridge and get back the final text plus the
session token to use next time. Swap the CLI-backed bridge for the
scripted one in tests without touching any caller.

Implementations:
    ClaudeCLIBridge — runs the `claude` CLI as a subprocess
    ScriptedBridge  — canned replies for tests
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from courier.core.types import BridgeReply


class AIBridge(ABC):
    """Abstract base class for AI bridges."""

    @abstractmethod
    async def invoke(self, prompt: str, resume_token: str | None = None) -> BridgeReply:
        """
        Run one prompt to completion.

        Args:
            prompt: The full prompt text, context already prepended.
            resume_token: Session to continue, or None for a fresh one.

        Returns:
            BridgeReply with the final text and the (possibly new) session id.

        Raises:
            StaleSessionError: the process rejected ``resume_token``
            BridgeTimeoutError: the process ran past its deadline
            BridgeError: any other process failure
        """
        ...
