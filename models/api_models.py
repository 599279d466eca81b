"""
Pydantic data models for API requests.
Field names are snake_case; the camelCase keys sent by the web client are accepted as aliases.
"""
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from config import Config


class BridgeModel(BaseModel):
    """Base model accepting both snake_case and camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatSettings(BridgeModel):
    """Per-request model settings. Immutable once parsed."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    model: str
    prompt: str = ""
    temperature: float = Field(0.5, ge=0.0, le=2.0)
    context_length: int = Field(4096, gt=0, description="Max tokens the target model accepts")
    include_profile_context: bool = True
    include_workspace_instructions: bool = True
    embeddings_provider: str = "openai"


class AssistantPersona(BridgeModel):
    """Assistant persona overriding the generic system prompt."""
    name: str
    prompt: str = ""
    include_profile_context: bool = True
    include_workspace_instructions: bool = True


class Profile(BridgeModel):
    """Profile of the requesting user."""
    profile_context: str = ""


class FileRetrievalItem(BridgeModel):
    """Retrieved file chunk attached to a user message."""
    id: str
    content: str
    tokens: int = 0


class StoredMessage(BridgeModel):
    """Persisted conversation turn."""
    role: Literal["user", "assistant"]
    content: str
    image_paths: List[str] = Field(default_factory=list)
    file_items: List[FileRetrievalItem] = Field(default_factory=list)


class MessageImage(BridgeModel):
    """Image cache entry: storage path resolved to a base64 payload (raw or data URI)."""
    path: str
    base64: str
    mime_type: str = Field("image/jpeg", alias="type")


class ChatPayload(BridgeModel):
    """Everything needed to assemble one provider request."""
    chat_settings: ChatSettings
    workspace_instructions: str = ""
    assistant: Optional[AssistantPersona] = None
    chat_messages: List[StoredMessage] = Field(default_factory=list)
    message_file_items: List[FileRetrievalItem] = Field(default_factory=list)
    chat_images: List[MessageImage] = Field(default_factory=list)


class ChatRequest(BridgeModel):
    """Chat request body for the HTTP routes."""
    chat_payload: ChatPayload
    profile: Profile = Field(default_factory=Profile)
    provider: Literal["openai", "google", "ollama"] = Field(
        default_factory=lambda: Config.DEFAULT_PROVIDER
    )
