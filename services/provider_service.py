"""
Provider service composing request assembly with provider streaming.
Assembles and adapts messages per provider, opens the provider stream and
turns it into plain text deltas.
"""
import asyncio
import json
from typing import AsyncIterator, Optional

import httpx
import ollama

from config import Config
from models.api_models import ChatPayload, ChatRequest
from models.chat_models import ProviderMessage
from services.format_adapter import (
    adapt_messages_for_gemini,
    adapt_messages_for_ollama,
    adapt_messages_for_openai
)
from services.prompt_service import PromptService
from services.stream_service import StreamService
from utils.constants import Provider
from utils.http_client import HTTPClientManager
from utils.logger import app_logger
from utils.stream_parser import StreamFrameParser


class ProviderError(Exception):
    """Provider rejected the request."""

    def __init__(self, provider: str, status_code: int, message: str):
        self.provider = provider
        self.status_code = status_code
        self.message = message
        super().__init__(f"{provider} returned {status_code}: {message}")


class ProviderService:
    """Service for preparing and streaming provider requests."""

    @staticmethod
    def adapt_messages(provider: str, payload: ChatPayload, messages: list[ProviderMessage]) -> list[dict]:
        """Translate assembled messages into the provider's wire format."""
        if provider == Provider.GOOGLE:
            return adapt_messages_for_gemini(payload, messages)
        if provider == Provider.OLLAMA:
            return adapt_messages_for_ollama(messages)
        return adapt_messages_for_openai(messages)

    @staticmethod
    def prepare_messages(
        request: ChatRequest,
        prompt_service: Optional[PromptService] = None
    ) -> tuple[list[ProviderMessage], list[dict]]:
        """
        Assemble and adapt messages for a request.

        Returns:
            Tuple of (assembled provider-agnostic messages, provider wire messages)
        """
        prompt_service = prompt_service or PromptService()
        payload = request.chat_payload

        messages = prompt_service.build_final_messages(payload, request.profile)
        adapted = ProviderService.adapt_messages(request.provider, payload, messages)

        app_logger.info(
            f"Prepared {len(adapted)} {request.provider} messages for {payload.chat_settings.model} "
            f"({len(messages) - 1}/{len(payload.chat_messages)} history messages)"
        )
        return messages, adapted

    @staticmethod
    def build_http_request(provider: str, payload: ChatPayload, adapted: list[dict]) -> tuple[str, dict, dict]:
        """
        Build url, headers and JSON body for an HTTP streaming provider.

        Returns:
            Tuple of (url, headers, body)
        """
        settings = payload.chat_settings
        api_key = Config.get_provider_api_key(provider)

        if provider == Provider.GOOGLE:
            url = f"{Config.GEMINI_BASE_URL}/models/{settings.model}:streamGenerateContent?alt=sse"
            headers = {"x-goog-api-key": api_key}
            body = {
                "contents": adapted,
                "generationConfig": {"temperature": settings.temperature}
            }
            return url, headers, body

        url = f"{Config.OPENAI_BASE_URL}/chat/completions"
        headers = {"Authorization": f"Bearer {api_key}"}
        body = {
            "model": settings.model,
            "messages": adapted,
            "temperature": settings.temperature,
            "stream": True
        }
        return url, headers, body

    @staticmethod
    def extract_delta(provider: str, frame: str) -> str:
        """Extract the text delta from one SSE data frame."""
        try:
            data = json.loads(frame)
        except json.JSONDecodeError:
            app_logger.warning(f"Skipping malformed {provider} frame: {frame[:80]}")
            return ""

        if provider == Provider.GOOGLE:
            candidates = data.get('candidates') or []
            if not candidates:
                return ""
            parts = (candidates[0].get('content') or {}).get('parts') or []
            return "".join(part.get('text', '') for part in parts)

        choices = data.get('choices') or []
        if not choices:
            return ""
        return (choices[0].get('delta') or {}).get('content') or ""

    @staticmethod
    async def stream_http_text(
        provider: str,
        payload: ChatPayload,
        adapted: list[dict],
        cancel_event: asyncio.Event,
        client: Optional[httpx.AsyncClient] = None
    ) -> AsyncIterator[str]:
        """
        Stream text deltas from an SSE provider over HTTP.

        The response body is consumed by StreamService.consume_readable_stream;
        decoded text is split into frames and deltas are relayed through a queue.
        Reading stops at the `[DONE]` terminator or when cancel_event is set.
        """
        client = client or HTTPClientManager.get_provider_client()
        url, headers, body = ProviderService.build_http_request(provider, payload, adapted)
        parser = StreamFrameParser()
        queue: asyncio.Queue = asyncio.Queue()
        stop_reading = asyncio.Event()

        def on_chunk(text: str) -> None:
            for frame in parser.process_text(text):
                delta = ProviderService.extract_delta(provider, frame)
                if delta:
                    queue.put_nowait(delta)
            if parser.done:
                stop_reading.set()

        async def pump() -> None:
            cancel_watch = asyncio.ensure_future(cancel_event.wait())
            cancel_watch.add_done_callback(lambda _: stop_reading.set())
            try:
                async with client.stream("POST", url, headers=headers, json=body) as response:
                    if response.status_code >= 400:
                        detail = (await response.aread()).decode("utf-8", errors="replace")
                        raise ProviderError(provider, response.status_code, detail)

                    await StreamService.consume_readable_stream(response, on_chunk, stop_reading)

                for frame in parser.flush():
                    delta = ProviderService.extract_delta(provider, frame)
                    if delta:
                        queue.put_nowait(delta)
            finally:
                cancel_watch.cancel()
                queue.put_nowait(None)

        task = asyncio.create_task(pump())
        try:
            while True:
                delta = await queue.get()
                if delta is None:
                    break
                yield delta

            await task
        finally:
            if not task.done():
                cancel_event.set()
                await asyncio.wait({task})

    @staticmethod
    async def stream_ollama_text(
        payload: ChatPayload,
        adapted: list[dict],
        cancel_event: asyncio.Event,
        client: Optional[ollama.AsyncClient] = None
    ) -> AsyncIterator[str]:
        """Stream text deltas from Ollama through its async client."""
        client = client or ollama.AsyncClient(host=Config.OLLAMA_HOST)
        settings = payload.chat_settings

        stream_iterator = None
        try:
            stream_iterator = await client.chat(
                model=settings.model,
                messages=adapted,
                stream=True,
                options={"temperature": settings.temperature}
            )
            async for chunk in stream_iterator:
                if cancel_event.is_set():
                    app_logger.info("Ollama stream cancelled")
                    break
                token = chunk['message']['content']
                if token:
                    yield token
        finally:
            if stream_iterator is not None and hasattr(stream_iterator, "aclose"):
                try:
                    await stream_iterator.aclose()
                except Exception as e:
                    app_logger.warning(f"Error closing stream: {e}")

    @staticmethod
    async def stream_text(
        request: ChatRequest,
        adapted: list[dict],
        cancel_event: asyncio.Event,
        http_client: Optional[httpx.AsyncClient] = None,
        ollama_client: Optional[ollama.AsyncClient] = None
    ) -> AsyncIterator[str]:
        """Stream text deltas from the request's provider."""
        if request.provider == Provider.OLLAMA:
            stream = ProviderService.stream_ollama_text(
                request.chat_payload, adapted, cancel_event, client=ollama_client
            )
        else:
            stream = ProviderService.stream_http_text(
                request.provider, request.chat_payload, adapted, cancel_event, client=http_client
            )

        try:
            async for delta in stream:
                yield delta
        finally:
            await stream.aclose()
