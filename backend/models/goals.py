"""Goal-setting models."""
from dataclasses import dataclass, field
from typing import List


@dataclass
class AspectInput:
    """A life aspect with the user's free-text aspirations for it."""
    aspect: str
    user_input: str = ""


@dataclass
class Attribute:
    title: str
    description: str


@dataclass
class AspectAttributes:
    aspect: str
    attributes: List[Attribute] = field(default_factory=list)


@dataclass
class Goal:
    goal_id: str  # Format: "goal_{12 hex chars}", minted locally
    title: str
    description: str
    completed: bool = False


@dataclass
class AspectGoals:
    aspect: str
    goals: List[Goal] = field(default_factory=list)
