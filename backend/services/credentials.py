"""Credential providers resolved by the AI gateway on every call."""
import logging
import os
from typing import Optional

from config import GEMINI_API_KEY_ENV

logger = logging.getLogger(__name__)


class CredentialProvider:
    """Source of the API key used for a single outbound request."""

    def get_api_key(self) -> Optional[str]:
        raise NotImplementedError


class EnvCredentialProvider(CredentialProvider):
    """Reads the key from the process environment at call time."""

    def __init__(self, env_var: str = GEMINI_API_KEY_ENV, fallback_env_var: str = "API_KEY"):
        self.env_var = env_var
        self.fallback_env_var = fallback_env_var

    def get_api_key(self) -> Optional[str]:
        return os.environ.get(self.env_var) or os.environ.get(self.fallback_env_var) or None


class SelectableCredentialProvider(CredentialProvider):
    """
    Credential that the user can swap mid-session.

    A selected key takes precedence over the fallback provider; clearing the
    selection restores the fallback.
    """

    def __init__(self, fallback: Optional[CredentialProvider] = None):
        self.fallback = fallback
        self._selected_key: Optional[str] = None

    def select_key(self, api_key: str) -> None:
        if not api_key or not api_key.strip():
            raise ValueError("api_key cannot be empty")
        self._selected_key = api_key.strip()
        logger.info("User-selected API key activated")

    def clear(self) -> None:
        self._selected_key = None
        logger.info("User-selected API key cleared")

    def has_selected_key(self) -> bool:
        return self._selected_key is not None

    def get_api_key(self) -> Optional[str]:
        if self._selected_key:
            return self._selected_key
        if self.fallback is not None:
            return self.fallback.get_api_key()
        return None
