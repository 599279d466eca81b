"""
Models package exports.
"""
from models.api_models import (
    ChatSettings,
    AssistantPersona,
    Profile,
    FileRetrievalItem,
    StoredMessage,
    MessageImage,
    ChatPayload,
    ChatRequest
)
from models.chat_models import (
    TextPart,
    ImagePart,
    ProviderMessage,
    GeminiMessage,
    ImageAttachment
)

__all__ = [
    'ChatSettings',
    'AssistantPersona',
    'Profile',
    'FileRetrievalItem',
    'StoredMessage',
    'MessageImage',
    'ChatPayload',
    'ChatRequest',
    'TextPart',
    'ImagePart',
    'ProviderMessage',
    'GeminiMessage',
    'ImageAttachment'
]
