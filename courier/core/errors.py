"""
Courier exception hierarchy.

Every error in the system inherits from CourierError.
Each subsystem has its own error class for targeted catching.

Usage:
    try:
        reply = await bridge.invoke(prompt, resume_token=token)
    except StaleSessionError:
        # Drop the token and retry without resume
    except BridgeError as e:
        # Report to the conversation
"""


class CourierError(Exception):
    """Base exception for all Courier errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ━━━ Startup Errors ━━━


class ConfigError(CourierError):
    """Configuration is invalid, missing, or malformed."""

    pass


class StorageError(CourierError):
    """Persisted session or schedule data is unreadable or malformed."""

    pass


# ━━━ Bridge Errors ━━━


class BridgeError(CourierError):
    """The AI process failed — non-zero exit, missing executable, etc."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        stderr: str = "",
        details: dict | None = None,
    ):
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(message, details)


class StaleSessionError(BridgeError):
    """The AI process rejected the resume token it was given."""

    pass


class BridgeTimeoutError(BridgeError):
    """The AI process exceeded its wall-clock budget and was killed."""

    pass


# ━━━ Runtime Errors ━━━


class TranscriptError(CourierError):
    """A transcript log has a shape the pruner does not understand."""

    pass


class ChatError(CourierError):
    """Chat transport failure — send, react, download or pull."""

    pass
