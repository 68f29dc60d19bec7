"""Services for the Devatra companion backend."""
from .errors import GatewayError, GatewayErrorInfo, ChatFailure, ReadingFailure, CredentialRequired, GenerationFailure
from .credentials import CredentialProvider, EnvCredentialProvider, SelectableCredentialProvider
from .ai_gateway import AIGateway
from .conversation_session import ConversationSession, ChatSurface
from .conversation_manager import ConversationManager
from .interaction_logger import InteractionLogger

__all__ = ['GatewayError', 'GatewayErrorInfo', 'ChatFailure', 'ReadingFailure', 'CredentialRequired', 'GenerationFailure', 'CredentialProvider', 'EnvCredentialProvider', 'SelectableCredentialProvider', 'AIGateway', 'ConversationSession', 'ChatSurface', 'ConversationManager', 'InteractionLogger']
