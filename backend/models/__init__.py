"""Data models for the Devatra companion backend."""
from .conversation import Conversation, ConversationHistory, Role, Turn
from .practice import PracticeKind, PracticeSession, PracticeStep
from .reading import CosmicReading, ReadingKind
from .goals import AspectAttributes, AspectGoals, AspectInput, Attribute, Goal

__all__ = [
    "Conversation",
    "ConversationHistory",
    "Role",
    "Turn",
    "PracticeKind",
    "PracticeSession",
    "PracticeStep",
    "CosmicReading",
    "ReadingKind",
    "AspectAttributes",
    "AspectGoals",
    "AspectInput",
    "Attribute",
    "Goal",
]
