"""Error taxonomy raised by the AI gateway."""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class GatewayErrorInfo:
    """Structured error information exposed to callers."""
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


class GatewayError(Exception):
    """Base class for every failure that crosses the gateway boundary."""

    code = "GATEWAY_ERROR"
    default_message = "The AI request failed."

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.error = GatewayErrorInfo(
            code=self.code,
            message=message or self.default_message,
            details=details or {},
        )
        super().__init__(self.error.message)


class ChatFailure(GatewayError):
    """Chat request failed; carries no sub-kinds."""
    code = "CHAT_FAILED"
    default_message = "Failed to get chat response."


class ReadingFailure(GatewayError):
    """Cosmic reading failed for any reason other than a missing entitlement."""
    code = "READING_FAILED"
    default_message = "Failed to get deep reading."


class CredentialRequired(GatewayError):
    """
    The active credential cannot reach the requested model.

    Callers should prompt the user to select a paid API key instead of
    showing a generic failure.
    """
    code = "CREDENTIAL_REQUIRED"
    default_message = "API_KEY_REQUIRED"


class GenerationFailure(GatewayError):
    """Structured generation (practice sessions, attributes, goals) failed."""
    code = "GENERATION_FAILED"
    default_message = "Cosmic connection interrupted."
