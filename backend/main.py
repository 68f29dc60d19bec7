"""Main entry point for the Devatra companion API."""
import logging
import time
from typing import Any, Dict

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from config import CHAT_MODEL, CORS_ORIGINS, IMAGE_MODEL, LOG_LEVEL, PORT, THINKING_MODEL
from logger import setup_logging
from models.api import (
    AspectAttributesModel,
    AspectGoalsModel,
    AttributesRequest,
    AttributesResponse,
    ChatRequest,
    ChatResponse,
    ConversationResponse,
    CredentialRequest,
    GoalsRequest,
    GoalsResponse,
    PracticeRequest,
    PracticeResponse,
    ReadingRequest,
    ReadingResponse,
    ResponseModeRequest,
    TurnModel,
)
from models.goals import AspectAttributes, AspectInput, Attribute
from services.ai_gateway import AIGateway
from services.conversation_manager import ConversationManager
from services.conversation_session import ChatSurface, ConversationSession
from services.credentials import EnvCredentialProvider, SelectableCredentialProvider
from services.errors import CredentialRequired, GatewayError
from services.interaction_logger import InteractionLogger

setup_logging(LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Devatra Companion API",
    description="Chat guide, cosmic readings, guided practice and goal setting backed by Gemini",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# The selected key lives here; the gateway only ever reads it.
credential_provider = SelectableCredentialProvider(fallback=EnvCredentialProvider())

# Initialize services (will be done on startup)
gateway: AIGateway = None
conversation_manager: ConversationManager = None
interaction_logger: InteractionLogger = None


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    global gateway, conversation_manager, interaction_logger

    logger.info("Initializing Devatra companion services...")

    try:
        gateway = AIGateway(credential_provider)
        conversation_manager = ConversationManager()
        interaction_logger = InteractionLogger()
        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise


@app.on_event("shutdown")
async def shutdown_event():
    if interaction_logger is not None:
        interaction_logger.close()


def _error_detail(error: GatewayError) -> Dict[str, Any]:
    return {
        "error": {
            "code": error.error.code,
            "message": error.error.message,
            "details": error.error.details,
        }
    }


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Devatra Companion API"}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "service": "devatra-companion",
        "version": "1.0.0",
        "api_key_selected": credential_provider.has_selected_key(),
    }


# ----------------------------------------------------------------------
# Chat
# ----------------------------------------------------------------------

@app.post("/chat", response_model=ChatResponse)
async def chat_endpoint(request: ChatRequest) -> ChatResponse:
    """
    Submit a message from the chat panel or the full-page chat.

    Both surfaces read and append to the same stored conversation; only the
    apology shown on failure differs. Backend failures never produce an
    error status here, they produce an apology turn.
    """
    if not request.message or not request.message.strip():
        raise HTTPException(status_code=400, detail="Message field is required and cannot be empty")

    start_time = time.time()
    try:
        conversation = conversation_manager.get_or_create_conversation(request.conversation_id)
    except Exception as e:
        logger.error(f"Unexpected error loading conversation: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")

    conversation_id = conversation.conversation_id

    def record_interaction(turn):
        conversation_manager.log_interaction(conversation_id)
        interaction_logger.log_interaction(
            event="chat",
            conversation_id=conversation_id,
            model=THINKING_MODEL if conversation.deep_mode else CHAT_MODEL,
            deep_mode=conversation.deep_mode,
            latency_ms=int((time.time() - start_time) * 1000),
            details={"surface": request.surface},
        )

    session = ConversationSession(
        gateway,
        history=conversation.history,
        surface=ChatSurface(request.surface),
        deep_mode=conversation.deep_mode,
        on_turn=lambda turn: conversation_manager.add_turn(conversation_id, turn),
        on_interaction=record_interaction,
    )
    reply = await session.submit(request.message)

    logger.info(f"Chat processed for {conversation_id} in {int((time.time() - start_time) * 1000)}ms")
    return ChatResponse(
        conversation_id=conversation_id,
        reply=TurnModel.from_turn(reply),
        deep_mode=conversation.deep_mode,
    )


@app.get("/conversations/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(conversation_id: str) -> ConversationResponse:
    try:
        conversation = conversation_manager.get_conversation(conversation_id)
    except Exception as e:
        logger.error(f"Unexpected error loading conversation: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")

    if conversation is None:
        raise HTTPException(status_code=404, detail=f"Conversation {conversation_id} not found")

    return ConversationResponse(
        conversation_id=conversation.conversation_id,
        deep_mode=conversation.deep_mode,
        turns=[TurnModel.from_turn(t) for t in conversation.turns],
    )


@app.put("/conversations/{conversation_id}/response-mode")
async def set_response_mode(conversation_id: str, request: ResponseModeRequest):
    """Toggle deep thinking mode; in-flight requests keep the mode they started with."""
    try:
        conversation = conversation_manager.get_conversation(conversation_id)
        if conversation is not None:
            conversation_manager.set_response_mode(conversation_id, request.enabled)
    except Exception as e:
        logger.error(f"Unexpected error updating response mode: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")

    if conversation is None:
        raise HTTPException(status_code=404, detail=f"Conversation {conversation_id} not found")
    return {"conversation_id": conversation_id, "deep_mode": request.enabled}


@app.delete("/conversations/{conversation_id}/turns")
async def reset_conversation(conversation_id: str):
    try:
        conversation_manager.reset_history(conversation_id)
    except Exception as e:
        logger.error(f"Unexpected error resetting conversation: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")
    return {"conversation_id": conversation_id, "turns": []}


# ----------------------------------------------------------------------
# Credentials
# ----------------------------------------------------------------------

@app.post("/credentials")
async def select_credential(request: CredentialRequest):
    """Activate a user-selected API key for every following request."""
    try:
        credential_provider.select_key(request.api_key)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"api_key_selected": True}


@app.delete("/credentials")
async def clear_credential():
    credential_provider.clear()
    return {"api_key_selected": False}


# ----------------------------------------------------------------------
# Readings, practice, goals
# ----------------------------------------------------------------------

@app.post("/readings", response_model=ReadingResponse)
async def reading_endpoint(request: ReadingRequest) -> ReadingResponse:
    """
    Deep astrology or numerology reading with artwork.

    A credential without access to the image model answers 402 with code
    CREDENTIAL_REQUIRED so the client can prompt for a paid key.
    """
    start_time = time.time()
    try:
        reading = await gateway.get_deep_cosmic_reading(request.kind, request.details)
    except CredentialRequired as e:
        interaction_logger.log_interaction(
            event="reading", outcome="credential_required", model=IMAGE_MODEL,
            latency_ms=int((time.time() - start_time) * 1000), details={"kind": request.kind.value},
        )
        raise HTTPException(status_code=402, detail=_error_detail(e))
    except GatewayError as e:
        interaction_logger.log_interaction(
            event="reading", outcome="failure", model=IMAGE_MODEL,
            latency_ms=int((time.time() - start_time) * 1000), details={"kind": request.kind.value},
        )
        raise HTTPException(status_code=503, detail=_error_detail(e))

    interaction_logger.log_interaction(
        event="reading", model=IMAGE_MODEL,
        latency_ms=int((time.time() - start_time) * 1000),
        details={"kind": request.kind.value, "has_image": reading.image_url is not None},
    )
    return ReadingResponse(text=reading.text, image_url=reading.image_url)


@app.post("/practice-sessions", response_model=PracticeResponse)
async def practice_endpoint(request: PracticeRequest) -> PracticeResponse:
    if not request.energy or not request.energy.strip():
        raise HTTPException(status_code=400, detail="Energy field is required and cannot be empty")

    try:
        session = await gateway.generate_practice_session(request.kind, request.energy)
    except GatewayError as e:
        interaction_logger.log_interaction(event="practice", outcome="failure", details={"kind": request.kind.value})
        raise HTTPException(status_code=503, detail=_error_detail(e))

    interaction_logger.log_interaction(
        event="practice", details={"kind": request.kind.value, "steps": len(session.steps)}
    )
    return PracticeResponse.from_session(session)


@app.post("/goals/attributes", response_model=AttributesResponse)
async def attributes_endpoint(request: AttributesRequest) -> AttributesResponse:
    aspects = [AspectInput(aspect=a.aspect, user_input=a.user_input) for a in request.aspects]
    try:
        result = await gateway.generate_attributes_for_aspects(aspects)
    except GatewayError as e:
        interaction_logger.log_interaction(event="attributes", outcome="failure", model=THINKING_MODEL, deep_mode=True)
        raise HTTPException(status_code=503, detail=_error_detail(e))

    interaction_logger.log_interaction(event="attributes", model=THINKING_MODEL, deep_mode=True)
    return AttributesResponse(aspects=[AspectAttributesModel.from_domain(item) for item in result])


@app.post("/goals", response_model=GoalsResponse)
async def goals_endpoint(request: GoalsRequest) -> GoalsResponse:
    aspects = [
        AspectAttributes(
            aspect=item.aspect,
            attributes=[Attribute(title=a.title, description=a.description) for a in item.attributes],
        )
        for item in request.aspects
    ]
    try:
        result = await gateway.generate_goals_for_aspects(aspects)
    except GatewayError as e:
        interaction_logger.log_interaction(event="goals", outcome="failure", model=THINKING_MODEL, deep_mode=True)
        raise HTTPException(status_code=503, detail=_error_detail(e))

    interaction_logger.log_interaction(event="goals", model=THINKING_MODEL, deep_mode=True)
    return GoalsResponse(aspects=[AspectGoalsModel.from_domain(item) for item in result])


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting Devatra Companion API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
