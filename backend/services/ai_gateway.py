"""AI Response Gateway for Gemini API integration."""
import base64
import json
import logging
import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from config import (
    CHAT_MODEL,
    IMAGE_MODEL,
    MAX_PRACTICE_STEPS,
    MIN_PRACTICE_STEPS,
    PRACTICE_MODEL,
    READING_ASPECT_RATIO,
    READING_IMAGE_SIZE,
    THINKING_BUDGET,
    THINKING_MODEL,
)
from models.conversation import Role, Turn
from models.goals import AspectAttributes, AspectGoals, AspectInput, Attribute, Goal
from models.practice import PracticeKind, PracticeSession, PracticeStep
from models.reading import CosmicReading, ReadingKind
from services.credentials import CredentialProvider
from services.errors import ChatFailure, CredentialRequired, GenerationFailure, ReadingFailure

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    'You are Devatra AI, a guide inspired by the book "CAN" and ancient myths. '
    "Your tone is wise, slightly mystical, and illuminating. You help users apply the "
    "CAN formula (Collection, Abstraction, Narration) to their lives."
)

CLOUDED_READING_TEXT = "The stars are currently clouded. Please seek illumination again shortly."

# Message the backend returns when the key cannot see the requested model.
ENTITY_NOT_FOUND_MESSAGE = "Requested entity was not found"


class MissingCredentialError(Exception):
    """No API key was available when the request was about to be issued."""


def is_credential_required(error: BaseException) -> bool:
    """
    Decide whether a backend failure means the active key lacks access.

    The structured status of ``google.genai.errors.APIError`` is checked
    first; the message match covers errors raised outside the SDK's typed
    hierarchy.
    """
    if isinstance(error, MissingCredentialError):
        return True
    if isinstance(error, genai_errors.APIError):
        if error.code == 404 or error.status == "NOT_FOUND":
            return True
    return ENTITY_NOT_FOUND_MESSAGE.lower() in str(error).lower()


class AIGateway:
    """
    Issues exactly one Gemini request per domain operation.

    The gateway holds no client. Each operation asks the credential provider
    for the current key and builds a fresh client, so a key selected between
    two calls is picked up by the second one.
    """

    def __init__(
        self,
        credential_provider: CredentialProvider,
        client_factory: Callable[..., Any] = genai.Client,
    ):
        """
        Initialize the gateway.

        Args:
            credential_provider: Resolves the API key at the start of every call
            client_factory: Builds a client from ``api_key=...`` (genai.Client by default)
        """
        self.credential_provider = credential_provider
        self.client_factory = client_factory
        logger.info("AIGateway initialized")

    def _new_client(self):
        api_key = self.credential_provider.get_api_key()
        if not api_key:
            raise MissingCredentialError("No API key available")
        return self.client_factory(api_key=api_key)

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def get_chat_response(
        self,
        prior_history: Sequence[Turn],
        new_message: str,
        deep_mode: bool = False,
    ) -> str:
        """
        Get the assistant's reply to a new chat message.

        Args:
            prior_history: Turns preceding the new message, oldest first
            new_message: The message being answered (sent separately from history)
            deep_mode: Use the thinking model with a large thinking budget

        Returns:
            Reply text, or "" when the backend returned no text

        Raises:
            ChatFailure: On any transport or backend error
        """
        model = THINKING_MODEL if deep_mode else CHAT_MODEL
        start_time = time.time()

        try:
            client = self._new_client()
            chat = client.aio.chats.create(
                model=model,
                history=self.build_history(prior_history),
                config=self.build_chat_config(deep_mode),
            )
            response = await chat.send_message(new_message)
            text = response.text or ""

            latency_ms = int((time.time() - start_time) * 1000)
            logger.info(
                f"Chat response: model={model}, deep_mode={deep_mode}, "
                f"history_turns={len(prior_history)}, latency={latency_ms}ms"
            )
            return text

        except Exception as e:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.error(
                f"Chat request failed: model={model}, latency={latency_ms}ms, error={e}",
                exc_info=True,
                extra={"error_code": ChatFailure.code},
            )
            raise ChatFailure(
                details={"model": model, "latency_ms": latency_ms, "error_type": type(e).__name__}
            ) from e

    @staticmethod
    def build_history(turns: Sequence[Turn]) -> List[types.Content]:
        """Map turns onto Gemini contents ("assistant" becomes "model")."""
        return [
            types.Content(
                role="model" if Role(turn.role) is Role.ASSISTANT else "user",
                parts=[types.Part(text=turn.text)],
            )
            for turn in turns
        ]

    @staticmethod
    def build_chat_config(deep_mode: bool) -> types.GenerateContentConfig:
        if deep_mode:
            return types.GenerateContentConfig(
                system_instruction=SYSTEM_INSTRUCTION,
                thinking_config=types.ThinkingConfig(thinking_budget=THINKING_BUDGET),
            )
        return types.GenerateContentConfig(system_instruction=SYSTEM_INSTRUCTION)

    # ------------------------------------------------------------------
    # Cosmic readings
    # ------------------------------------------------------------------

    async def get_deep_cosmic_reading(
        self,
        kind: ReadingKind,
        subject_details: Dict[str, Any],
    ) -> CosmicReading:
        """
        Produce an analytical reading plus companion artwork in one call.

        Args:
            kind: Astrology or Numerology
            subject_details: Natal chart fields (Astrology) or name + date (Numerology)

        Returns:
            CosmicReading with concatenated text and the last image as a data URI

        Raises:
            CredentialRequired: The active key cannot access the image model
            ReadingFailure: Any other failure
        """
        kind = ReadingKind(kind)
        start_time = time.time()

        try:
            client = self._new_client()
            response = await client.aio.models.generate_content(
                model=IMAGE_MODEL,
                contents=self.build_reading_prompt(kind, subject_details),
                config=types.GenerateContentConfig(
                    response_modalities=["TEXT", "IMAGE"],
                    image_config=types.ImageConfig(
                        aspect_ratio=READING_ASPECT_RATIO,
                        image_size=READING_IMAGE_SIZE,
                    ),
                ),
            )
            reading = self._assemble_reading(response)

            latency_ms = int((time.time() - start_time) * 1000)
            logger.info(
                f"Cosmic reading: kind={kind.value}, has_image={reading.image_url is not None}, "
                f"latency={latency_ms}ms"
            )
            return reading

        except Exception as e:
            latency_ms = int((time.time() - start_time) * 1000)
            details = {"kind": kind.value, "model": IMAGE_MODEL, "latency_ms": latency_ms}
            if is_credential_required(e):
                logger.warning(
                    f"Credential cannot access {IMAGE_MODEL}: {e}",
                    extra={"error_code": CredentialRequired.code},
                )
                raise CredentialRequired(details=details) from e

            logger.error(
                f"Error fetching deep {kind.value} reading: latency={latency_ms}ms, error={e}",
                exc_info=True,
                extra={"error_code": ReadingFailure.code},
            )
            raise ReadingFailure(f"Failed to get deep {kind.value} reading.", details=details) from e

    @staticmethod
    def build_reading_prompt(kind: ReadingKind, details: Dict[str, Any]) -> str:
        if ReadingKind(kind) is ReadingKind.ASTROLOGY:
            return (
                "Perform a profound, technically detailed celestial analysis for the following "
                f"natal data: {json.dumps(details, default=str)}.\n"
                "Focus on planetary alignments, karmic lessons, and the soul's current evolutionary "
                'stage according to the book "CAN".\n'
                "ALSO: Generate a stunning piece of digital artwork representing this configuration "
                "in a high-fantasy, astronomical style.\n"
                "The image should be a 1:1 mystical portal into the deep cosmos."
            )
        return (
            f'Perform a deep numerology analysis for name "{details.get("name", "")}" and birth '
            f'date "{details.get("date", "")}".\n'
            'Explain the Life Path, Expression, and Soul Urge using the 3-6-9 system from the book "CAN".\n'
            "ALSO: Generate an abstract, sacred-geometry inspired digital artwork that visually "
            "represents these specific numeric frequencies.\n"
            "The image should be a 1:1 masterpiece of geometric energy."
        )

    @staticmethod
    def _assemble_reading(response: Any) -> CosmicReading:
        text = ""
        image_url: Optional[str] = None

        candidates = getattr(response, "candidates", None) or []
        content = getattr(candidates[0], "content", None) if candidates else None
        for part in getattr(content, "parts", None) or []:
            if getattr(part, "thought", False):
                continue
            if getattr(part, "text", None):
                text += part.text
                continue
            inline_data = getattr(part, "inline_data", None)
            data = getattr(inline_data, "data", None) if inline_data is not None else None
            if data:
                if isinstance(data, (bytes, bytearray)):
                    data = base64.b64encode(data).decode("ascii")
                mime_type = getattr(inline_data, "mime_type", None) or "image/png"
                image_url = f"data:{mime_type};base64,{data}"

        return CosmicReading(text=text or CLOUDED_READING_TEXT, image_url=image_url)

    # ------------------------------------------------------------------
    # Structured generation
    # ------------------------------------------------------------------

    async def generate_practice_session(self, kind: PracticeKind, energy: str) -> PracticeSession:
        """
        Generate a guided meditation or yoga session for an energy state.

        Args:
            kind: Meditation or Yoga
            energy: How the user feels right now (e.g. "restless")

        Returns:
            PracticeSession with 3-5 steps, each with a positive duration

        Raises:
            GenerationFailure: On any failure, including a reply that breaks the schema
        """
        kind = PracticeKind(kind)
        try:
            payload = await self._generate_json(
                model=PRACTICE_MODEL,
                prompt=self.build_practice_prompt(kind, energy),
                schema=PRACTICE_SESSION_SCHEMA,
                thinking=False,
            )
            return self._parse_practice_session(payload, kind)
        except Exception as e:
            logger.error(f"Error generating {kind.value} practice: {e}", exc_info=True)
            raise GenerationFailure(details={"kind": kind.value, "energy": energy}) from e

    @staticmethod
    def build_practice_prompt(kind: PracticeKind, energy: str) -> str:
        return (
            f'Create a professional and mystical {PracticeKind(kind).value} session for someone feeling "{energy}".\n'
            f"The session should have {MIN_PRACTICE_STEPS} to {MAX_PRACTICE_STEPS} steps.\n"
            'For each step, provide a clear instruction and a "wisdom mantra" related to ancient '
            "philosophy or the cosmos.\n"
            "If it's Yoga, give the step a 'poseName'.\n"
            "Durations are in seconds."
        )

    @staticmethod
    def _parse_practice_session(payload: Any, kind: PracticeKind) -> PracticeSession:
        if not isinstance(payload, dict):
            raise ValueError("Practice session payload must be an object")

        steps: List[PracticeStep] = []
        for item in (payload.get("steps") or [])[:MAX_PRACTICE_STEPS]:
            duration = item.get("duration")
            if isinstance(duration, bool) or not isinstance(duration, (int, float)) or duration <= 0:
                raise ValueError(f"Invalid step duration: {duration!r}")
            steps.append(
                PracticeStep(
                    duration=max(1, int(round(duration))),
                    instruction=item["instruction"],
                    mantra=item["mantra"],
                    pose_name=(item.get("poseName") or None) if kind is PracticeKind.YOGA else None,
                )
            )

        if len(steps) < MIN_PRACTICE_STEPS:
            raise ValueError(f"Expected at least {MIN_PRACTICE_STEPS} steps, got {len(steps)}")

        return PracticeSession(
            kind=kind,
            title=payload["title"],
            description=payload["description"],
            mantra=payload["mantra"],
            steps=steps,
        )

    async def generate_attributes_for_aspects(self, aspects: Sequence[AspectInput]) -> List[AspectAttributes]:
        """
        Generate aspirational attributes for each life aspect.

        Raises:
            GenerationFailure: On any failure
        """
        try:
            payload = await self._generate_json(
                model=THINKING_MODEL,
                prompt=self.build_attributes_prompt(aspects),
                schema=ASPECT_ATTRIBUTES_SCHEMA,
                thinking=True,
            )
            return [
                AspectAttributes(
                    aspect=item["aspect"],
                    attributes=[Attribute(title=a["title"], description=a["description"]) for a in item["attributes"]],
                )
                for item in payload or []
            ]
        except Exception as e:
            logger.error(f"Error generating attributes: {e}", exc_info=True)
            raise GenerationFailure("Failed to generate attributes.", details={"aspects": len(aspects)}) from e

    @staticmethod
    def build_attributes_prompt(aspects: Sequence[AspectInput]) -> str:
        lines = "\n".join(f'- {a.aspect}: "{a.user_input or "General aspirations"}"' for a in aspects)
        return (
            "Following the principles of the 'CAN' book, generate exactly 6 positive, aspirational "
            "attributes for these life aspects.\n"
            f"Life Aspects and Inputs:\n{lines}\n"
            "Return as JSON."
        )

    async def generate_goals_for_aspects(self, aspects: Sequence[AspectAttributes]) -> List[AspectGoals]:
        """
        Generate actionable goals for aspects that already have attributes.

        The backend produces titles and descriptions only; identifiers and the
        completion flag are assigned here.

        Raises:
            GenerationFailure: On any failure
        """
        try:
            payload = await self._generate_json(
                model=THINKING_MODEL,
                prompt=self.build_goals_prompt(aspects),
                schema=ASPECT_GOALS_SCHEMA,
                thinking=True,
            )
            return [
                AspectGoals(
                    aspect=item["aspect"],
                    goals=[
                        Goal(
                            goal_id=self._generate_goal_id(),
                            title=g["title"],
                            description=g["description"],
                            completed=False,
                        )
                        for g in item["goals"]
                    ],
                )
                for item in payload or []
            ]
        except Exception as e:
            logger.error(f"Error generating goals: {e}", exc_info=True)
            raise GenerationFailure("Failed to generate goals.", details={"aspects": len(aspects)}) from e

    @staticmethod
    def build_goals_prompt(aspects: Sequence[AspectAttributes]) -> str:
        blocks = "\n".join(
            f"Aspect: {item.aspect}\nAttributes: {', '.join(a.title for a in item.attributes)}"
            for item in aspects
        )
        return (
            "Using the 3-6-9 system from the book 'CAN', generate a diverse list of exactly 18 "
            "potential, actionable goals.\n"
            f"{blocks}\n"
            "Return as JSON."
        )

    @staticmethod
    def _generate_goal_id() -> str:
        return f"goal_{uuid.uuid4().hex[:12]}"

    async def _generate_json(self, model: str, prompt: str, schema: types.Schema, thinking: bool) -> Any:
        """Issue one schema-constrained request and decode the JSON reply."""
        start_time = time.time()
        client = self._new_client()

        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=schema,
            thinking_config=types.ThinkingConfig(thinking_budget=THINKING_BUDGET) if thinking else None,
        )

        response = await client.aio.models.generate_content(model=model, contents=prompt, config=config)

        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(f"Structured generation: model={model}, thinking={thinking}, latency={latency_ms}ms")
        return json.loads(response.text or "null")


_TITLE_DESCRIPTION = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "title": types.Schema(type=types.Type.STRING),
        "description": types.Schema(type=types.Type.STRING),
    },
    required=["title", "description"],
)

PRACTICE_SESSION_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "title": types.Schema(type=types.Type.STRING),
        "description": types.Schema(type=types.Type.STRING),
        "mantra": types.Schema(type=types.Type.STRING),
        "steps": types.Schema(
            type=types.Type.ARRAY,
            min_items=MIN_PRACTICE_STEPS,
            max_items=MAX_PRACTICE_STEPS,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "duration": types.Schema(type=types.Type.NUMBER),
                    "instruction": types.Schema(type=types.Type.STRING),
                    "mantra": types.Schema(type=types.Type.STRING),
                    "poseName": types.Schema(type=types.Type.STRING),
                },
                required=["duration", "instruction", "mantra"],
            ),
        ),
    },
    required=["title", "description", "mantra", "steps"],
)

ASPECT_ATTRIBUTES_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "aspect": types.Schema(type=types.Type.STRING),
            "attributes": types.Schema(type=types.Type.ARRAY, items=_TITLE_DESCRIPTION),
        },
        required=["aspect", "attributes"],
    ),
)

ASPECT_GOALS_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "aspect": types.Schema(type=types.Type.STRING),
            "goals": types.Schema(type=types.Type.ARRAY, items=_TITLE_DESCRIPTION),
        },
        required=["aspect", "goals"],
    ),
)
