"""
Courier — relay a chat space to a Claude session, with schedules and heartbeats.

Public API:
    from courier import CourierConfig, SessionStore, ConversationBridge
"""

__version__ = "0.1.0"

# Core
from courier.core.config import CourierConfig, HeartbeatConfig
from courier.core.errors import CourierError
from courier.core.types import Attachment, BridgeReply, ChatEvent

# Sessions and AI bridge
from courier.sessions.store import SessionStore
from courier.bridge.base import AIBridge
from courier.bridge.guard import InvocationGuard
from courier.bridge.conversation import ConversationBridge

# Background loops
from courier.scheduler.engine import SchedulerEngine
from courier.heartbeat.controller import HeartbeatController
from courier.transcript.pruner import TranscriptPruner

__all__ = [
    # Core
    "CourierConfig",
    "HeartbeatConfig",
    "CourierError",
    "Attachment",
    "BridgeReply",
    "ChatEvent",
    # Sessions and AI bridge
    "SessionStore",
    "AIBridge",
    "InvocationGuard",
    "ConversationBridge",
    # Background loops
    "SchedulerEngine",
    "HeartbeatController",
    "TranscriptPruner",
]
