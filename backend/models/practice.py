"""Guided practice session models."""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class PracticeKind(str, Enum):
    MEDITATION = "Meditation"
    YOGA = "Yoga"


@dataclass
class PracticeStep:
    """One timed step of a practice session."""
    duration: int  # seconds, always > 0
    instruction: str
    mantra: str
    pose_name: Optional[str] = None  # Yoga only


@dataclass
class PracticeSession:
    """A generated meditation or yoga session."""
    kind: PracticeKind
    title: str
    description: str
    mantra: str
    steps: List[PracticeStep]
