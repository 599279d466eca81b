"""
Data models for assembled chat requests.
Message shapes are TypedDicts so assembled requests serialize straight to JSON.
"""
from dataclasses import dataclass
from typing import List, Literal, TypedDict, Union


class TextPart(TypedDict):
    """Text fragment of a multi-part message."""
    type: Literal["text"]
    text: str


class ImagePart(TypedDict):
    """Image fragment of a multi-part message (raw base64, no data: prefix)."""
    type: Literal["image"]
    data: str
    mimeType: str


ContentPart = Union[TextPart, ImagePart]


class ProviderMessage(TypedDict):
    """Provider-agnostic chat message."""
    role: Literal["system", "user", "assistant"]
    content: Union[str, List[ContentPart]]


class GeminiInlineData(TypedDict):
    data: str
    mimeType: str


class GeminiTextPart(TypedDict):
    text: str


class GeminiInlineDataPart(TypedDict):
    inlineData: GeminiInlineData


GeminiPart = Union[GeminiTextPart, GeminiInlineDataPart]


class GeminiMessage(TypedDict):
    """Gemini `contents` entry."""
    role: Literal["user", "model"]
    parts: List[GeminiPart]


@dataclass(frozen=True)
class ImageAttachment:
    """Resolved image ready to be sent to a provider."""
    base64: str
    mime_type: str

    def to_part(self) -> ImagePart:
        """Convert to a message content part."""
        return {"type": "image", "data": self.base64, "mimeType": self.mime_type}

    @property
    def data_url(self) -> str:
        """Image as a data URI."""
        return f"data:{self.mime_type};base64,{self.base64}"
