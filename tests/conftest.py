import pytest
from datetime import datetime


@pytest.fixture
def anyio_backend():
    """Stream consumption runs on asyncio primitives."""
    return "asyncio"


@pytest.fixture
def fixed_clock():
    """Clock returning a fixed date for system prompt assertions."""
    return lambda: datetime(2026, 1, 15, 9, 30)


@pytest.fixture
def word_estimator():
    """Token estimator counting one token per whitespace-separated word."""
    from utils.token_manager import TokenEstimator

    class WordEstimator(TokenEstimator):
        name = "words"

        def estimate(self, text: str) -> int:
            return len(text.split())

    return WordEstimator()


@pytest.fixture
def prompt_service(word_estimator, fixed_clock):
    """PromptService with predictable token counts and date."""
    from services.prompt_service import PromptService
    return PromptService(estimator=word_estimator, clock=fixed_clock)


@pytest.fixture
def mock_profile():
    """Standard profile for testing."""
    from models.api_models import Profile
    return Profile(profile_context="I am a mechanic working on European vehicles")


@pytest.fixture
def payload_builder():
    from tests.fixtures.payloads import PayloadBuilder
    return PayloadBuilder()


@pytest.fixture
def configured_app():
    """Pre-configured app with the chat routers."""
    from fastapi import FastAPI
    from fastapi.testclient import TestClient
    from routes import chat, chat_stream

    app = FastAPI()
    app.include_router(chat.router)
    app.include_router(chat_stream.router)

    with TestClient(app) as client:
        yield client
