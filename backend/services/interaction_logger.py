"""JSON Lines analytics log of AI interactions."""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from config import INTERACTION_LOG_PATH

logger = logging.getLogger(__name__)


class InteractionLogger:
    """Appends one JSON object per AI interaction to a log file."""

    def __init__(self, log_file_path: str = INTERACTION_LOG_PATH):
        self.log_file_path = Path(log_file_path)
        self.log_file_path.parent.mkdir(parents=True, exist_ok=True)

        # Built outside the logging registry: owned by this instance only, never reaches console handlers.
        self._file_logger = logging.Logger("interactions", level=logging.INFO)
        self._file_logger.propagate = False

        self._handler = logging.FileHandler(self.log_file_path, encoding="utf-8")
        self._handler.setFormatter(logging.Formatter("%(message)s"))
        self._file_logger.addHandler(self._handler)

        logger.info(f"InteractionLogger writing to {self.log_file_path}")

    def log_interaction(
        self,
        event: str,
        outcome: str = "success",
        conversation_id: Optional[str] = None,
        model: Optional[str] = None,
        deep_mode: bool = False,
        latency_ms: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Write one interaction entry.

        Args:
            event: What happened ("chat", "reading", "practice", "attributes", "goals")
            outcome: "success", "failure" or "credential_required"
            conversation_id: Conversation the event belongs to, if any
            model: Model identifier used for the call
            deep_mode: Whether the high-compute configuration was selected
            latency_ms: Wall-clock latency of the request
            details: Free-form extra fields
        """
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "event": event,
            "outcome": outcome,
            "conversation_id": conversation_id,
            "model": model,
            "deep_mode": deep_mode,
            "latency_ms": latency_ms,
            "details": details or {},
        }
        self._file_logger.info(json.dumps(entry, default=str))
        self._handler.flush()

    def close(self) -> None:
        self._file_logger.removeHandler(self._handler)
        self._handler.close()
