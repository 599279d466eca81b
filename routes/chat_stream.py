"""
Route handlers for streaming chat operations.
Handles the /chat/stream endpoint relaying provider text as SSE events.
"""
import asyncio
from typing import AsyncIterator
from fastapi import APIRouter
from fastapi.responses import StreamingResponse
import httpx
import ollama
from models.api_models import ChatRequest
from services.provider_service import ProviderError, ProviderService
from services.stream_service import StreamService
from utils.logger import app_logger

router = APIRouter()


@router.post("/chat/stream")
async def chat_stream(request: ChatRequest):
    """
    Streaming chat endpoint with status updates.
    A client disconnect cancels the provider stream.
    """

    async def event_generator() -> AsyncIterator[str]:
        cancel_event = asyncio.Event()
        try:
            yield StreamService.send_sse_event("status", {"stage": "initializing"})

            messages, adapted = ProviderService.prepare_messages(request)

            yield StreamService.send_sse_event("status", {"stage": "generating"})

            full_response = ""
            async for delta in ProviderService.stream_text(request, adapted, cancel_event):
                full_response += delta
                yield StreamService.send_sse_event("token", {"content": delta})

            yield StreamService.send_sse_event("done", {
                "provider": request.provider,
                "model": request.chat_payload.chat_settings.model,
                "messages_sent": len(adapted),
                "history_included": len(messages) - 1,
                "full_response": full_response,
            })

        except ProviderError as e:
            app_logger.error(f"Provider error: {e}")
            yield StreamService.send_sse_event("error", {
                "type": "provider_error",
                "status_code": e.status_code,
                "message": e.message
            })
        except ollama.ResponseError as e:
            app_logger.error(f"Ollama error: {e.error}")
            yield StreamService.send_sse_event("error", {"type": "ollama_error", "message": e.error})
        except httpx.HTTPError as e:
            app_logger.error(f"Provider connection error: {e}")
            yield StreamService.send_sse_event("error", {"type": "connection_error", "message": str(e)})
        except Exception as e:
            app_logger.error(f"Streaming chat error: {str(e)}")
            yield StreamService.send_sse_event("error", {"message": str(e)})
        finally:
            cancel_event.set()

    return StreamingResponse(event_generator(), media_type="text/event-stream")
