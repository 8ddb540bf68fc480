"""
Claude CLI bridge — runs `claude -p` once per prompt.

Command line:
    claude -p --model <model> --output-format json
           --append-system-prompt-file <soul> [extra args]
           [--resume <session>] <prompt>

The JSON printed on stdout carries ``result`` (reply text) and
``session_id``. The process is killed when it outlives the timeout.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from pathlib import Path

from courier.bridge.base import AIBridge
from courier.core.errors import BridgeError, BridgeTimeoutError, StaleSessionError
from courier.core.types import BridgeReply

logger = logging.getLogger(__name__)


class ClaudeCLIBridge(AIBridge):
    """
    AI bridge backed by the Claude Code CLI.

    A non-zero exit while resuming is reported as StaleSessionError: the
    CLI exits with an error when it cannot find the session to resume, and
    the caller recovers by starting a fresh one.
    """

    def __init__(
        self,
        model: str = "sonnet",
        timeout_seconds: float = 600.0,
        soul_path: Path | None = None,
        executable: str = "claude",
        extra_args: list[str] | None = None,
        cwd: Path | None = None,
    ) -> None:
        self._model = model
        self._timeout = timeout_seconds
        self._soul_path = soul_path
        self._executable = executable
        self._extra_args = list(extra_args or [])
        self._cwd = cwd

    def build_args(self, prompt: str, resume_token: str | None = None) -> list[str]:
        args = ["-p", "--model", self._model, "--output-format", "json"]
        if self._soul_path is not None:
            args += ["--append-system-prompt-file", str(self._soul_path)]
        args += self._extra_args
        if resume_token:
            args += ["--resume", resume_token]
        args.append(prompt)
        return args

    async def invoke(self, prompt: str, resume_token: str | None = None) -> BridgeReply:
        args = self.build_args(prompt, resume_token)
        start_time = time.time()

        try:
            process = await asyncio.create_subprocess_exec(
                self._executable,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self._cwd) if self._cwd else None,
            )
        except FileNotFoundError:
            raise BridgeError(
                f"'{self._executable}' not found. Install the CLI or set claude.executable."
            )

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise BridgeTimeoutError(
                f"AI process timed out after {self._timeout:g}s",
                exit_code=process.returncode,
            )

        elapsed = int((time.time() - start_time) * 1000)
        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace").strip()

        if process.returncode != 0:
            detail = stderr or stdout.strip() or f"exit code {process.returncode}"
            error_cls = StaleSessionError if resume_token else BridgeError
            raise error_cls(
                f"AI process failed: {detail[:500]}",
                exit_code=process.returncode,
                stderr=stderr,
            )

        logger.debug(f"AI process finished in {elapsed}ms")
        return parse_output(stdout, duration_ms=elapsed)


def parse_output(stdout: str, duration_ms: int = 0) -> BridgeReply:
    """
    Turn the CLI's JSON output into a BridgeReply.

    Output that is not a JSON object is passed through as the reply text
    with no session id.
    """
    try:
        parsed = json.loads(stdout)
    except ValueError:
        return BridgeReply(text=stdout.strip(), duration_ms=duration_ms)
    if not isinstance(parsed, dict):
        return BridgeReply(text=stdout.strip(), duration_ms=duration_ms)

    return BridgeReply(
        text=parsed.get("result") or stdout.strip(),
        session_id=parsed.get("session_id") or None,
        duration_ms=duration_ms,
        raw=parsed,
    )
