"""Shared fixtures for the Devatra companion tests."""
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

import pytest
from unittest.mock import AsyncMock, MagicMock, Mock

from services.ai_gateway import AIGateway
from services.credentials import CredentialProvider


class FakeCredentialProvider(CredentialProvider):
    """Credential provider whose key can be changed between calls."""

    def __init__(self, api_key="test_key"):
        self.api_key = api_key
        self.calls = 0

    def get_api_key(self):
        self.calls += 1
        return self.api_key


def make_response(text=None, parts=None):
    """Build a fake Gemini response with optional candidate parts."""
    response = Mock()
    response.text = text
    response.candidates = [Mock(content=Mock(parts=parts or []))]
    return response


@pytest.fixture
def credential_provider():
    return FakeCredentialProvider()


@pytest.fixture
def genai_client():
    """Fake google-genai client with async chat and models surfaces."""
    client = MagicMock()
    chat = MagicMock()
    chat.send_message = AsyncMock(return_value=make_response(text="Seek within."))
    client.aio.chats.create.return_value = chat
    client.aio.models.generate_content = AsyncMock(return_value=make_response(text="{}"))
    return client


@pytest.fixture
def client_factory(genai_client):
    return Mock(return_value=genai_client)


@pytest.fixture
def gateway(credential_provider, client_factory):
    return AIGateway(credential_provider, client_factory=client_factory)
