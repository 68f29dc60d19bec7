"""Demo script for ConversationSession against the live Gemini API."""
import asyncio
import sys
sys.path.insert(0, '.')

from services.ai_gateway import AIGateway
from services.conversation_session import ChatSurface, ConversationSession
from services.credentials import EnvCredentialProvider


async def main():
    """Demo a short conversation in both response modes."""
    print("=== ConversationSession Demo ===\n")

    provider = EnvCredentialProvider()
    if not provider.get_api_key():
        print("✗ Set GEMINI_API_KEY (or API_KEY) to run this demo")
        return

    session = ConversationSession(AIGateway(provider), surface=ChatSurface.PAGE)

    print("1. Standard mode...")
    reply = await session.submit("What does the CAN formula mean?")
    print(f"✓ Devatra: {reply.text[:200]}...\n")

    print("2. Deep thinking mode...")
    session.set_response_mode(True)
    reply = await session.submit("How can I apply Abstraction to a career change?")
    print(f"✓ Devatra: {reply.text[:200]}...\n")

    print(f"History now holds {len(session.history)} turns:")
    for turn in session.history:
        print(f"  - [{turn.role.value}] {turn.text[:60]}")


if __name__ == "__main__":
    asyncio.run(main())
