"""Turn-taking loop around the AI gateway for one chat surface."""
import logging
from enum import Enum
from typing import Callable, Optional

from models.conversation import ConversationHistory, Role, Turn
from services.errors import ChatFailure

logger = logging.getLogger(__name__)

TurnCallback = Callable[[Turn], None]


class ChatSurface(str, Enum):
    """Presentation surfaces that share one conversation history."""
    PANEL = "panel"
    PAGE = "page"

    @property
    def apology(self) -> str:
        return APOLOGIES[self]


APOLOGIES = {
    ChatSurface.PANEL: "My apologies, I am currently unable to connect. Please try again shortly.",
    ChatSurface.PAGE: (
        "My apologies, Seeker. I am currently unable to connect with the cosmic currents. "
        "Please try again shortly."
    ),
}


class ConversationSession:
    """
    Orchestrates submissions for one chat surface.

    Every submission ends with exactly one assistant turn appended to the
    history: the model's reply, or the surface's apology when the request
    failed. Gateway failures are logged here and never propagate to callers.
    """

    def __init__(
        self,
        gateway,
        history: Optional[ConversationHistory] = None,
        surface: ChatSurface = ChatSurface.PANEL,
        deep_mode: bool = False,
        on_turn: Optional[TurnCallback] = None,
        on_interaction: Optional[TurnCallback] = None,
    ):
        """
        Args:
            gateway: Object exposing ``async get_chat_response(prior, text, deep_mode)``
            history: Shared conversation history (a new empty one by default)
            surface: Which surface this session speaks for; selects the apology text
            deep_mode: Initial response mode
            on_turn: Called after every append (used for persistence)
            on_interaction: Called once per resolved backend call; fire-and-forget
        """
        self.gateway = gateway
        self.history = history if history is not None else ConversationHistory()
        self.surface = ChatSurface(surface)
        self.deep_mode = deep_mode
        self.on_turn = on_turn
        self.on_interaction = on_interaction
        self._in_flight = 0

    @property
    def is_pending(self) -> bool:
        return self._in_flight > 0

    def set_response_mode(self, enabled: bool) -> None:
        """Toggle deep mode; applies from the next submit on."""
        self.deep_mode = bool(enabled)

    async def submit(self, text: str) -> Optional[Turn]:
        """
        Submit user input and append the assistant's answer.

        Args:
            text: Raw user input

        Returns:
            The appended assistant turn, or None when the input was blank
        """
        if not text or not text.strip():
            return None

        self._in_flight += 1
        try:
            self._append(Turn.create(Role.USER, text))
            # Snapshot taken now: a later concurrent submit must not change what this one sends.
            prior = self.history.prior_turns()
            deep_mode = self.deep_mode

            try:
                reply = await self.gateway.get_chat_response(prior, text, deep_mode)
            except ChatFailure as e:
                logger.warning(
                    f"Chat failed on {self.surface.value} surface: {e.error.message}",
                    extra={"error_code": e.error.code, "error_details": e.error.details},
                )
                return self._append(Turn.create(Role.ASSISTANT, self.surface.apology))
            except Exception as e:
                logger.error(f"Unexpected chat error on {self.surface.value} surface: {e}", exc_info=True)
                return self._append(Turn.create(Role.ASSISTANT, self.surface.apology))

            if not reply or not reply.strip():
                logger.warning(f"Empty chat reply on {self.surface.value} surface, substituting apology")
                turn = self._append(Turn.create(Role.ASSISTANT, self.surface.apology))
            else:
                turn = self._append(Turn.create(Role.ASSISTANT, reply))
            # Every resolved backend call counts as one interaction.
            self._notify_interaction(turn)
            return turn
        finally:
            self._in_flight -= 1

    def _append(self, turn: Turn) -> Turn:
        self.history.append(turn)
        if self.on_turn is not None:
            try:
                self.on_turn(turn)
            except Exception as e:
                logger.error(f"Failed to persist turn {turn.turn_id}: {e}", exc_info=True)
        return turn

    def _notify_interaction(self, turn: Turn) -> None:
        if self.on_interaction is None:
            return
        try:
            self.on_interaction(turn)
        except Exception as e:
            logger.warning(f"Interaction logging failed (not retried): {e}")
