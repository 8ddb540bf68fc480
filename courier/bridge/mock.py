"""
Scripted AI bridge — for testing.

Returns queued replies (or raises queued errors) without spawning
anything. Tracks every call for test assertions.
"""

from __future__ import annotations

import asyncio
import itertools

from courier.bridge.base import AIBridge
from courier.core.types import BridgeReply


class ScriptedBridge(AIBridge):
    """
    Bridge that replays a script.

    Usage in tests:
        bridge = ScriptedBridge()
        bridge.set_reply("Hello!", session_id="s1")
        bridge.set_error(StaleSessionError("no such session"))

        reply = await bridge.invoke("hi")
        assert bridge.calls == [("hi", None)]

    To hold an invocation open (e.g. to test the concurrency guard):
        bridge.hold()
        task = asyncio.create_task(bridge.invoke("slow"))
        ...
        bridge.release()
    """

    def __init__(self) -> None:
        self._script: list[BridgeReply | Exception] = []
        self._counter = itertools.count(1)
        self._gate: asyncio.Event | None = None

        self.calls: list[tuple[str, str | None]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def set_reply(self, text: str, session_id: str | None = None) -> None:
        """Queue a reply. Without a session id, a fresh one is generated."""
        self._script.append(
            BridgeReply(text=text, session_id=session_id or f"session-{next(self._counter)}")
        )

    def set_error(self, error: Exception) -> None:
        """Queue an exception for the next invoke()."""
        self._script.append(error)

    def hold(self) -> None:
        """Make invocations block until release()."""
        self._gate = asyncio.Event()

    def release(self) -> None:
        if self._gate is not None:
            self._gate.set()

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def invoke(self, prompt: str, resume_token: str | None = None) -> BridgeReply:
        self.calls.append((prompt, resume_token))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self._gate is not None:
                await self._gate.wait()
            if not self._script:
                return BridgeReply(
                    text="I'm a scripted bridge. Configure me with set_reply().",
                    session_id=f"session-{next(self._counter)}",
                )
            step = self._script.pop(0)
            if isinstance(step, Exception):
                raise step
            return step
        finally:
            self.in_flight -= 1
