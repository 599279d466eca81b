"""
Constants and prompt fragments for the Chat Context Bridge application.
"""

# Persona framing placed ahead of an assistant's own prompt
PERSONA_ROLE_TEMPLATE = """<INJECT ROLE>
You are not an AI. You are {name}.
</INJECT ROLE>"""

DATE_LINE_TEMPLATE = "Today is {current_date}."

PROFILE_CONTEXT_TEMPLATE = """User Info:
{profile_context}"""

WORKSPACE_INSTRUCTIONS_TEMPLATE = """System Instructions:
{workspace_instructions}"""

# File retrieval blocks appended to user messages
RETRIEVAL_PREAMBLE = (
    "You may use the following sources if needed to answer the user's question. "
    "If you don't know the answer, say \"I don't know.\""
)
SOURCE_BEGIN_MARKER = "<BEGIN SOURCE>"
SOURCE_END_MARKER = "<END SOURCE>"

SECTION_SEPARATOR = "\n\n"


class Role:
    """Chat role identifiers."""
    SYSTEM, USER, ASSISTANT = "system", "user", "assistant"


class GeminiRole:
    """Gemini role identifiers."""
    USER, MODEL = "user", "model"


class Provider:
    """Provider identifiers."""
    OPENAI, GOOGLE, OLLAMA = "openai", "google", "ollama"


class StreamFraming:
    """SSE framing of provider streams."""
    SSE_DATA_PREFIX = "data:"
    SSE_DONE = "[DONE]"
