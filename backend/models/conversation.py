"""Conversation data models."""
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Iterator, List, Tuple


class Role(str, Enum):
    """Author of a turn."""
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Turn:
    """A single role-tagged message in a conversation."""
    turn_id: str  # Format: "turn_{12 hex chars}"
    role: Role
    text: str
    created_at: datetime

    @classmethod
    def create(cls, role: Role, text: str) -> "Turn":
        return cls(
            turn_id=f"turn_{uuid.uuid4().hex[:12]}",
            role=Role(role),
            text=text,
            created_at=datetime.now(),
        )


class ConversationHistory:
    """
    Ordered, append-only log of turns.

    Turns are never edited or removed one by one; the only way to shrink the
    log is ``reset``, which replaces it wholesale.
    """

    def __init__(self, turns: Iterable[Turn] = ()):
        self._turns: List[Turn] = list(turns)

    def append(self, turn: Turn) -> Turn:
        self._turns.append(turn)
        return turn

    def reset(self, turns: Iterable[Turn] = ()) -> None:
        self._turns = list(turns)

    @property
    def turns(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def latest(self) -> Turn:
        return self._turns[-1]

    def prior_turns(self) -> Tuple[Turn, ...]:
        """Every turn except the most recent one (the input being answered)."""
        return tuple(self._turns[:-1])

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))


@dataclass
class Conversation:
    """A persisted conversation shared by every chat surface."""
    conversation_id: str
    history: ConversationHistory
    created_at: datetime
    deep_mode: bool = False

    @property
    def turns(self) -> Tuple[Turn, ...]:
        return self.history.turns
