"""
Route handlers for request assembly.
Handles the /chat/messages endpoint (assembled request preview, no provider call).
"""
from fastapi import APIRouter
from models.api_models import ChatRequest
from services.prompt_service import PromptService
from services.provider_service import ProviderService
from utils.logger import app_logger

router = APIRouter()


@router.post("/chat/messages")
async def chat_messages(request: ChatRequest):
    """
    Assemble the provider request for a chat payload without sending it.
    """
    prompt_service = PromptService()
    messages, adapted = ProviderService.prepare_messages(request, prompt_service)

    history_count = len(request.chat_payload.chat_messages)
    messages_included = len(messages) - 1
    estimated_tokens = prompt_service.token_manager.calculate_messages_tokens(messages)

    app_logger.info(
        f"Assembled {request.provider} request: {messages_included}/{history_count} messages, "
        f"~{estimated_tokens} tokens"
    )

    return {
        "provider": request.provider,
        "model": request.chat_payload.chat_settings.model,
        "messages": adapted,
        "messages_included": messages_included,
        "messages_dropped": history_count - messages_included,
        "estimated_tokens": estimated_tokens,
    }
