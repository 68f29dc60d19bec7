"""Integration tests for the HTTP endpoints."""
import pytest
from datetime import datetime
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, Mock

from models.conversation import Conversation, ConversationHistory, Role, Turn
from models.goals import AspectAttributes, AspectGoals, Attribute, Goal
from models.practice import PracticeKind, PracticeSession, PracticeStep
from models.reading import CosmicReading
from services.conversation_session import APOLOGIES, ChatSurface
from services.errors import ChatFailure, CredentialRequired, GenerationFailure, ReadingFailure


@pytest.fixture
def client():
    """Create a test client with mocked services."""
    import main

    # Without the context manager TestClient skips startup, so no real services are built.
    client = TestClient(main.app)

    main.gateway = Mock()
    main.conversation_manager = Mock()
    main.interaction_logger = Mock()
    main.credential_provider.clear()

    yield client

    main.credential_provider.clear()


@pytest.fixture
def conversation():
    import main

    conversation = Conversation(
        conversation_id="conv_test123",
        history=ConversationHistory([Turn.create(Role.USER, "Earlier"), Turn.create(Role.ASSISTANT, "Indeed")]),
        created_at=datetime.now(),
    )
    main.conversation_manager.get_or_create_conversation.return_value = conversation
    main.conversation_manager.get_conversation.return_value = conversation
    return conversation


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestChatEndpoint:

    def test_chat_success(self, client, conversation):
        import main
        main.gateway.get_chat_response = AsyncMock(return_value="Hi there")

        response = client.post("/chat", json={"message": "Hello", "conversation_id": "conv_test123"})

        assert response.status_code == 200
        data = response.json()
        assert data["conversation_id"] == "conv_test123"
        assert data["reply"]["role"] == "assistant"
        assert data["reply"]["text"] == "Hi there"
        assert data["deep_mode"] is False

        prior, text, deep_mode = main.gateway.get_chat_response.await_args.args
        assert [t.text for t in prior] == ["Earlier", "Indeed"]
        assert text == "Hello"

        persisted = [call.args[1].role for call in main.conversation_manager.add_turn.call_args_list]
        assert persisted == [Role.USER, Role.ASSISTANT]
        main.conversation_manager.log_interaction.assert_called_once_with("conv_test123")
        main.interaction_logger.log_interaction.assert_called_once()

    def test_chat_uses_stored_response_mode(self, client, conversation):
        import main
        conversation.deep_mode = True
        main.gateway.get_chat_response = AsyncMock(return_value="Deep answer")

        response = client.post("/chat", json={"message": "Why?", "conversation_id": "conv_test123"})

        assert response.json()["deep_mode"] is True
        assert main.gateway.get_chat_response.await_args.args[2] is True

    def test_chat_failure_returns_page_apology(self, client, conversation):
        import main
        main.gateway.get_chat_response = AsyncMock(side_effect=ChatFailure())

        response = client.post("/chat", json={"message": "Hello", "surface": "page"})

        assert response.status_code == 200
        assert response.json()["reply"]["text"] == APOLOGIES[ChatSurface.PAGE]
        main.conversation_manager.log_interaction.assert_not_called()

    def test_chat_history_load_failure_returns_500(self, client):
        import main
        main.gateway.get_chat_response = AsyncMock(return_value="Hi there")
        main.conversation_manager.get_or_create_conversation.side_effect = RuntimeError("timeout")

        response = client.post("/chat", json={"message": "Hello", "conversation_id": "conv_test123"})

        assert response.status_code == 500
        main.gateway.get_chat_response.assert_not_awaited()
        main.conversation_manager.add_turn.assert_not_called()

    def test_chat_blank_message(self, client, conversation):
        response = client.post("/chat", json={"message": "   "})

        assert response.status_code == 400

    def test_chat_unknown_surface(self, client, conversation):
        response = client.post("/chat", json={"message": "Hello", "surface": "sidebar"})

        assert response.status_code == 422


class TestConversationEndpoints:

    def test_get_conversation(self, client, conversation):
        response = client.get("/conversations/conv_test123")

        assert response.status_code == 200
        data = response.json()
        assert [t["text"] for t in data["turns"]] == ["Earlier", "Indeed"]

    def test_set_response_mode(self, client, conversation):
        import main

        response = client.put("/conversations/conv_test123/response-mode", json={"enabled": True})

        assert response.status_code == 200
        main.conversation_manager.set_response_mode.assert_called_once_with("conv_test123", True)

    def test_get_unknown_conversation_returns_404(self, client):
        import main
        main.conversation_manager.get_conversation.return_value = None

        response = client.get("/conversations/conv_doesnotexist")

        assert response.status_code == 404
        main.conversation_manager.get_or_create_conversation.assert_not_called()

    def test_set_response_mode_unknown_conversation_returns_404(self, client):
        import main
        main.conversation_manager.get_conversation.return_value = None

        response = client.put("/conversations/conv_doesnotexist/response-mode", json={"enabled": True})

        assert response.status_code == 404
        main.conversation_manager.set_response_mode.assert_not_called()

    def test_get_conversation_storage_failure_returns_500(self, client):
        import main
        main.conversation_manager.get_conversation.side_effect = RuntimeError("timeout")

        response = client.get("/conversations/conv_test123")

        assert response.status_code == 500

    def test_reset_conversation(self, client):
        import main

        response = client.delete("/conversations/conv_test123/turns")

        assert response.status_code == 200
        main.conversation_manager.reset_history.assert_called_once_with("conv_test123")


class TestCredentialEndpoints:

    def test_select_and_clear_key(self, client):
        import main

        response = client.post("/credentials", json={"api_key": "paid_key"})
        assert response.status_code == 200
        assert main.credential_provider.get_api_key() == "paid_key"

        response = client.delete("/credentials")
        assert response.status_code == 200
        assert not main.credential_provider.has_selected_key()

    def test_empty_key_rejected(self, client):
        response = client.post("/credentials", json={"api_key": ""})

        assert response.status_code == 422


class TestReadingEndpoint:

    def test_reading_success(self, client):
        import main
        main.gateway.get_deep_cosmic_reading = AsyncMock(
            return_value=CosmicReading(text="Mars rises.", image_url="data:image/png;base64,AAAA")
        )

        response = client.post("/readings", json={"kind": "Astrology", "details": {"name": "Ari"}})

        assert response.status_code == 200
        assert response.json() == {"text": "Mars rises.", "image_url": "data:image/png;base64,AAAA"}

    def test_credential_required_maps_to_402(self, client):
        import main
        main.gateway.get_deep_cosmic_reading = AsyncMock(side_effect=CredentialRequired())

        response = client.post("/readings", json={"kind": "Astrology", "details": {}})

        assert response.status_code == 402
        assert response.json()["detail"]["error"]["code"] == "CREDENTIAL_REQUIRED"

    def test_reading_failure_maps_to_503(self, client):
        import main
        main.gateway.get_deep_cosmic_reading = AsyncMock(
            side_effect=ReadingFailure("Failed to get deep Numerology reading.")
        )

        response = client.post("/readings", json={"kind": "Numerology", "details": {"name": "Ari", "date": "1990-03-21"}})

        assert response.status_code == 503
        assert response.json()["detail"]["error"]["code"] == "READING_FAILED"

    def test_unknown_kind(self, client):
        response = client.post("/readings", json={"kind": "Tarot", "details": {}})

        assert response.status_code == 422


class TestGenerationEndpoints:

    def test_practice_session(self, client):
        import main
        main.gateway.generate_practice_session = AsyncMock(return_value=PracticeSession(
            kind=PracticeKind.YOGA,
            title="Grounding",
            description="Return to the earth.",
            mantra="Rooted and free.",
            steps=[PracticeStep(60, f"Step {i}", "Breathe", pose_name="Mountain") for i in range(3)],
        ))

        response = client.post("/practice-sessions", json={"kind": "Yoga", "energy": "restless"})

        assert response.status_code == 200
        data = response.json()
        assert len(data["steps"]) == 3
        assert data["steps"][0]["pose_name"] == "Mountain"

    def test_practice_failure(self, client):
        import main
        main.gateway.generate_practice_session = AsyncMock(side_effect=GenerationFailure())

        response = client.post("/practice-sessions", json={"kind": "Meditation", "energy": "tired"})

        assert response.status_code == 503
        assert response.json()["detail"]["error"]["message"] == "Cosmic connection interrupted."

    def test_attributes(self, client):
        import main
        main.gateway.generate_attributes_for_aspects = AsyncMock(return_value=[
            AspectAttributes(aspect="Career", attributes=[Attribute("Focused", "Clear attention")]),
        ])

        response = client.post("/goals/attributes", json={"aspects": [{"aspect": "Career", "user_input": "lead"}]})

        assert response.status_code == 200
        assert response.json()["aspects"][0]["attributes"][0]["title"] == "Focused"
        sent = main.gateway.generate_attributes_for_aspects.await_args.args[0]
        assert sent[0].user_input == "lead"

    def test_goals(self, client):
        import main
        main.gateway.generate_goals_for_aspects = AsyncMock(return_value=[
            AspectGoals(aspect="Career", goals=[Goal("goal_abc", "Deep work", "Two focused hours")]),
        ])

        response = client.post("/goals", json={"aspects": [
            {"aspect": "Career", "attributes": [{"title": "Focused", "description": "Clear attention"}]},
        ]})

        assert response.status_code == 200
        goal = response.json()["aspects"][0]["goals"][0]
        assert goal == {"goal_id": "goal_abc", "title": "Deep work", "description": "Two focused hours", "completed": False}
