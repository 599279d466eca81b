import pytest
from config import Config
from services.format_adapter import (
    adapt_messages_for_gemini,
    adapt_messages_for_ollama,
    adapt_messages_for_openai
)

IMAGE_MESSAGE = {
    "role": "user",
    "content": [
        {"type": "text", "text": "What is this?"},
        {"type": "image", "data": "/9j/4AAQTestImage", "mimeType": "image/jpeg"},
    ]
}


def test_gemini_role_mapping(payload_builder):
    """system and user should map to user, assistant to model, one message per input."""
    messages = [
        {"role": "system", "content": "You are a helpful assistant."},
        {"role": "user", "content": "Hello"},
        {"role": "assistant", "content": "Hi there!"},
    ]

    result = adapt_messages_for_gemini(payload_builder.build(), messages)

    assert result == [
        {"role": "user", "parts": [{"text": "You are a helpful assistant."}]},
        {"role": "user", "parts": [{"text": "Hello"}]},
        {"role": "model", "parts": [{"text": "Hi there!"}]},
    ]


def test_gemini_image_parts_become_inline_data(payload_builder):
    """Image parts should become inlineData with the raw base64 payload."""
    result = adapt_messages_for_gemini(payload_builder.build(), [IMAGE_MESSAGE])

    assert result[0]["role"] == "user"
    assert result[0]["parts"] == [
        {"text": "What is this?"},
        {"inlineData": {"data": "/9j/4AAQTestImage", "mimeType": "image/jpeg"}},
    ]


def test_gemini_multiple_text_parts(payload_builder):
    """Array content with several text parts should map part by part."""
    messages = [{
        "role": "user",
        "content": [
            {"type": "text", "text": "First part of the question."},
            {"type": "text", "text": "Second part."},
        ]
    }]

    result = adapt_messages_for_gemini(payload_builder.build(), messages)

    assert result[0]["parts"] == [{"text": "First part of the question."}, {"text": "Second part."}]


@pytest.mark.parametrize("model", ["gemini-pro-vision", "Gemini-Pro-Vision", "gemini-pro-vision-001"])
def test_gemini_vision_model_collapses_to_single_turn(payload_builder, model):
    """Vision-only models should receive one user message with every part in order."""
    payload = payload_builder.with_settings(model=model).build()
    messages = [
        {"role": "system", "content": "Analyze images carefully."},
        {"role": "assistant", "content": "Ready."},
        IMAGE_MESSAGE,
    ]

    result = adapt_messages_for_gemini(payload, messages)

    assert len(result) == 1
    assert result[0]["role"] == "user"
    assert result[0]["parts"] == [
        {"text": "Analyze images carefully."},
        {"text": "Ready."},
        {"text": "What is this?"},
        {"inlineData": {"data": "/9j/4AAQTestImage", "mimeType": "image/jpeg"}},
    ]


def test_gemini_non_vision_model_is_one_to_one(payload_builder):
    """Regular Gemini models should keep one output message per input."""
    payload = payload_builder.with_settings(model="gemini-1.5-pro").build()
    messages = [{"role": "user", "content": f"m{i}"} for i in range(5)]

    assert len(adapt_messages_for_gemini(payload, messages)) == 5


def test_vision_only_models_are_configurable(monkeypatch):
    """Config.VISION_ONLY_MODELS should drive the vision-only check."""
    monkeypatch.setattr(Config, "VISION_ONLY_MODELS", ["custom-vision"])
    assert Config.is_vision_only_model("custom-vision")
    assert not Config.is_vision_only_model("gemini-pro-vision")


def test_openai_adapter_uses_image_url_parts():
    """OpenAI images should be sent as data URLs and strings passed through."""
    messages = [{"role": "system", "content": "sys"}, IMAGE_MESSAGE]

    result = adapt_messages_for_openai(messages)

    assert result[0] == {"role": "system", "content": "sys"}
    assert result[1]["content"] == [
        {"type": "text", "text": "What is this?"},
        {"type": "image_url", "image_url": {"url": "data:image/jpeg;base64,/9j/4AAQTestImage"}},
    ]


def test_ollama_adapter_lists_raw_images():
    """Ollama messages should carry joined text and raw base64 images."""
    result = adapt_messages_for_ollama([{"role": "assistant", "content": "ok"}, IMAGE_MESSAGE])

    assert result[0] == {"role": "assistant", "content": "ok"}
    assert result[1] == {"role": "user", "content": "What is this?", "images": ["/9j/4AAQTestImage"]}
