"""
orion/conversation — ORION AI dialogue: pure driver + stateful session.
"""

from orion.conversation.driver import ConversationState, Effect, Turn, transition
from orion.conversation.session import (
    ConversationSession,
    EmptyMessageError,
    TurnInProgressError,
)

__all__ = [
    "ConversationSession",
    "ConversationState",
    "Effect",
    "EmptyMessageError",
    "Turn",
    "TurnInProgressError",
    "transition",
]
