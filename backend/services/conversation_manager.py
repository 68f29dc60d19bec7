"""Conversation manager persisting chat history and profile events."""
import logging
import uuid
from datetime import datetime
from typing import List, Optional

from supabase import create_client, Client

from models.conversation import Conversation, ConversationHistory, Role, Turn
from config import SUPABASE_URL, SUPABASE_KEY

logger = logging.getLogger(__name__)


class ConversationManager:
    """Manages conversation storage and retrieval using Supabase PostgreSQL."""

    def __init__(self, client: Optional[Client] = None):
        """
        Initialize the conversation manager.

        Args:
            client: Supabase client (built from SUPABASE_URL / SUPABASE_KEY when omitted)
        """
        if client is None:
            if not SUPABASE_URL or not SUPABASE_KEY:
                raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set in environment variables")
            client = create_client(SUPABASE_URL, SUPABASE_KEY)

        self.client: Client = client
        logger.info("ConversationManager initialized with Supabase")

    def get_or_create_conversation(self, conversation_id: Optional[str] = None) -> Conversation:
        """
        Get existing conversation or create new one.

        Args:
            conversation_id: Optional existing conversation ID

        Returns:
            Conversation with its full history and response mode
        """
        if conversation_id:
            conversation = self.get_conversation(conversation_id)
            if conversation is not None:
                return conversation
            logger.warning(f"Conversation {conversation_id} not found, creating new one")

        new_id = self._generate_conversation_id()
        created_at = datetime.now()

        try:
            self.client.table("conversations").insert({
                "conversation_id": new_id,
                "created_at": created_at.isoformat(),
                "deep_mode": False,
            }).execute()

            logger.info(f"Created new conversation: {new_id}")
            return Conversation(
                conversation_id=new_id,
                history=ConversationHistory(),
                created_at=created_at,
            )
        except Exception as e:
            logger.error(f"Error creating conversation: {e}")
            raise

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        """
        Look up a stored conversation without creating one.

        Args:
            conversation_id: ID of the conversation

        Returns:
            The conversation with its full history, or None when no row exists

        Raises:
            Exception: Storage errors propagate; a failed read is never reported as missing
        """
        try:
            result = self.client.table("conversations").select("*").eq("conversation_id", conversation_id).execute()
        except Exception as e:
            logger.error(f"Error retrieving conversation {conversation_id}: {e}")
            raise

        if not result.data:
            return None

        conv_data = result.data[0]
        turns = self._get_turns(conversation_id)

        logger.info(f"Retrieved existing conversation: {conversation_id} with {len(turns)} turns")
        return Conversation(
            conversation_id=conv_data["conversation_id"],
            history=ConversationHistory(turns),
            created_at=self._parse_timestamp(conv_data["created_at"]),
            deep_mode=bool(conv_data.get("deep_mode", False)),
        )

    def add_turn(self, conversation_id: str, turn: Turn) -> None:
        """
        Append one turn to the stored history.

        Args:
            conversation_id: ID of the conversation
            turn: Turn to persist
        """
        try:
            self.client.table("turns").insert({
                "turn_id": turn.turn_id,
                "conversation_id": conversation_id,
                "role": turn.role.value,
                "text": turn.text,
                "timestamp": turn.created_at.isoformat(),
            }).execute()

            logger.info(f"Added {turn.role.value} turn to conversation {conversation_id}")
        except Exception as e:
            logger.error(f"Error adding turn to conversation {conversation_id}: {e}")
            raise

    def set_response_mode(self, conversation_id: str, deep_mode: bool) -> None:
        """Persist the conversation's response mode."""
        try:
            self.client.table("conversations").update({"deep_mode": deep_mode}).eq(
                "conversation_id", conversation_id
            ).execute()
            logger.info(f"Set deep_mode={deep_mode} for conversation {conversation_id}")
        except Exception as e:
            logger.error(f"Error updating response mode for {conversation_id}: {e}")
            raise

    def reset_history(self, conversation_id: str) -> None:
        """Drop the whole turn log of a conversation."""
        try:
            self.client.table("turns").delete().eq("conversation_id", conversation_id).execute()
            logger.info(f"Reset history for conversation {conversation_id}")
        except Exception as e:
            logger.error(f"Error resetting history for {conversation_id}: {e}")
            raise

    def log_interaction(self, conversation_id: str, event: str = "ai_interaction") -> None:
        """Record a timestamped AI interaction in the user's profile."""
        try:
            self.client.table("interactions").insert({
                "conversation_id": conversation_id,
                "event": event,
                "timestamp": datetime.now().isoformat(),
            }).execute()
        except Exception as e:
            logger.error(f"Error logging interaction for {conversation_id}: {e}")
            raise

    def _get_turns(self, conversation_id: str) -> List[Turn]:
        """
        Retrieve turns for a conversation.

        Args:
            conversation_id: ID of the conversation

        Returns:
            List of Turn objects ordered by timestamp
        """
        try:
            result = (
                self.client.table("turns")
                .select("*")
                .eq("conversation_id", conversation_id)
                .order("timestamp", desc=False)
                .execute()
            )

            return [
                Turn(
                    turn_id=t["turn_id"],
                    role=Role(t["role"]),
                    text=t["text"],
                    created_at=self._parse_timestamp(t["timestamp"]),
                )
                for t in result.data or []
            ]
        except Exception as e:
            logger.error(f"Error retrieving turns for conversation {conversation_id}: {e}")
            raise

    def _generate_conversation_id(self) -> str:
        return f"conv_{uuid.uuid4().hex[:12]}"

    def _parse_timestamp(self, timestamp_str: str) -> datetime:
        """
        Parse timestamp string from Supabase, handling various formats.

        Supabase can return timestamps with varying microsecond precision,
        which Python's fromisoformat() can't always handle. The fractional
        part is normalized to six digits.

        Args:
            timestamp_str: Timestamp string from Supabase

        Returns:
            datetime object
        """
        timestamp_str = timestamp_str.replace("Z", "+00:00")

        if "." in timestamp_str:
            head, tail = timestamp_str.split(".", 1)
            tz = ""
            for sign in ("+", "-"):
                if sign in tail:
                    tail, tz_rest = tail.split(sign, 1)
                    tz = f"{sign}{tz_rest}"
                    break
            timestamp_str = f"{head}.{tail[:6].ljust(6, '0')}{tz}"

        return datetime.fromisoformat(timestamp_str)
