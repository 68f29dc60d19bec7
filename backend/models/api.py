"""HTTP request and response schemas."""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .conversation import Turn
from .goals import AspectAttributes, AspectGoals
from .practice import PracticeKind, PracticeSession
from .reading import ReadingKind


class TurnModel(BaseModel):
    turn_id: str
    role: Literal["user", "assistant"]
    text: str
    created_at: datetime

    @classmethod
    def from_turn(cls, turn: Turn) -> "TurnModel":
        return cls(
            turn_id=turn.turn_id,
            role=turn.role.value,
            text=turn.text,
            created_at=turn.created_at,
        )


class ChatRequest(BaseModel):
    """A message submitted from one of the chat surfaces."""
    message: str
    conversation_id: Optional[str] = None
    surface: Literal["panel", "page"] = "panel"


class ChatResponse(BaseModel):
    conversation_id: str
    reply: TurnModel
    deep_mode: bool


class ConversationResponse(BaseModel):
    conversation_id: str
    deep_mode: bool
    turns: List[TurnModel]


class ResponseModeRequest(BaseModel):
    enabled: bool


class ReadingRequest(BaseModel):
    kind: ReadingKind
    details: Dict[str, Any] = Field(default_factory=dict)


class ReadingResponse(BaseModel):
    text: str
    image_url: Optional[str] = None


class PracticeRequest(BaseModel):
    kind: PracticeKind
    energy: str


class PracticeStepModel(BaseModel):
    duration: int
    instruction: str
    mantra: str
    pose_name: Optional[str] = None


class PracticeResponse(BaseModel):
    kind: PracticeKind
    title: str
    description: str
    mantra: str
    steps: List[PracticeStepModel]

    @classmethod
    def from_session(cls, session: PracticeSession) -> "PracticeResponse":
        return cls(
            kind=session.kind,
            title=session.title,
            description=session.description,
            mantra=session.mantra,
            steps=[
                PracticeStepModel(
                    duration=step.duration,
                    instruction=step.instruction,
                    mantra=step.mantra,
                    pose_name=step.pose_name,
                )
                for step in session.steps
            ],
        )


class AspectInputModel(BaseModel):
    aspect: str
    user_input: str = ""


class AttributeModel(BaseModel):
    title: str
    description: str


class AspectAttributesModel(BaseModel):
    aspect: str
    attributes: List[AttributeModel]

    @classmethod
    def from_domain(cls, item: AspectAttributes) -> "AspectAttributesModel":
        return cls(
            aspect=item.aspect,
            attributes=[AttributeModel(title=a.title, description=a.description) for a in item.attributes],
        )


class AttributesRequest(BaseModel):
    aspects: List[AspectInputModel]


class AttributesResponse(BaseModel):
    aspects: List[AspectAttributesModel]


class GoalModel(BaseModel):
    goal_id: str
    title: str
    description: str
    completed: bool = False


class AspectGoalsModel(BaseModel):
    aspect: str
    goals: List[GoalModel]

    @classmethod
    def from_domain(cls, item: AspectGoals) -> "AspectGoalsModel":
        return cls(
            aspect=item.aspect,
            goals=[
                GoalModel(goal_id=g.goal_id, title=g.title, description=g.description, completed=g.completed)
                for g in item.goals
            ],
        )


class GoalsRequest(BaseModel):
    aspects: List[AspectAttributesModel]


class GoalsResponse(BaseModel):
    aspects: List[AspectGoalsModel]


class CredentialRequest(BaseModel):
    """User-selected API key for premium models."""
    api_key: str = Field(min_length=1)
