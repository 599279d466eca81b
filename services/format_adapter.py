"""
Format adapters translating provider-agnostic messages into provider wire formats.
One function per provider family; each returns JSON-ready dicts.
"""
from config import Config
from models.api_models import ChatPayload
from models.chat_models import GeminiMessage, GeminiPart, ImageAttachment, ProviderMessage
from utils.constants import GeminiRole, Role
from utils.logger import app_logger


def _gemini_parts(message: ProviderMessage) -> list[GeminiPart]:
    """Map message content to Gemini parts."""
    content = message['content']
    if isinstance(content, str):
        return [{"text": content}]

    parts: list[GeminiPart] = []
    for part in content:
        if part['type'] == 'text':
            parts.append({"text": part['text']})
        elif part['type'] == 'image':
            parts.append({"inlineData": {"data": part['data'], "mimeType": part['mimeType']}})
    return parts


def adapt_messages_for_gemini(payload: ChatPayload, messages: list[ProviderMessage]) -> list[GeminiMessage]:
    """
    Adapt messages to Gemini `contents`.

    Gemini has no system role, so system and user both map to "user" and
    assistant maps to "model". Vision-only models accept a single turn, so
    the whole conversation collapses into one user message holding every
    part in order.
    """
    adapted: list[GeminiMessage] = [
        {
            "role": GeminiRole.MODEL if message['role'] == Role.ASSISTANT else GeminiRole.USER,
            "parts": _gemini_parts(message)
        }
        for message in messages
    ]

    if Config.is_vision_only_model(payload.chat_settings.model):
        app_logger.debug(f"Collapsing {len(adapted)} messages into one turn for {payload.chat_settings.model}")
        parts: list[GeminiPart] = []
        for message in adapted:
            parts.extend(message['parts'])
        return [{"role": GeminiRole.USER, "parts": parts}]

    return adapted


def adapt_messages_for_openai(messages: list[ProviderMessage]) -> list[dict]:
    """Adapt messages to OpenAI chat completion `messages` (images as data URLs)."""
    adapted = []

    for message in messages:
        content = message['content']
        if isinstance(content, str):
            adapted.append({"role": message['role'], "content": content})
            continue

        parts = []
        for part in content:
            if part['type'] == 'text':
                parts.append({"type": "text", "text": part['text']})
            elif part['type'] == 'image':
                parts.append({
                    "type": "image_url",
                    "image_url": {"url": ImageAttachment(part['data'], part['mimeType']).data_url}
                })
        adapted.append({"role": message['role'], "content": parts})

    return adapted


def adapt_messages_for_ollama(messages: list[ProviderMessage]) -> list[dict]:
    """Adapt messages to Ollama chat `messages` (text joined, images as raw base64 list)."""
    adapted = []

    for message in messages:
        content = message['content']
        if isinstance(content, str):
            adapted.append({"role": message['role'], "content": content})
            continue

        text = "\n".join(part['text'] for part in content if part['type'] == 'text')
        images = [part['data'] for part in content if part['type'] == 'image']

        entry = {"role": message['role'], "content": text}
        if images:
            entry["images"] = images
        adapted.append(entry)

    return adapted
