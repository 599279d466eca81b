"""
Configuration module for the Chat Context Bridge application.
Handles environment variables and application settings.
"""
import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration class."""

    # API Keys
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    GOOGLE_GEMINI_API_KEY: str = os.getenv("GOOGLE_GEMINI_API_KEY", "")

    # Provider endpoints
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    GEMINI_BASE_URL: str = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")
    OLLAMA_HOST: str = os.getenv("OLLAMA_HOST", "http://localhost:11434")

    # Application Settings
    APP_TITLE: str = "Chat Context Bridge"
    PROVIDERS = ("openai", "google", "ollama")
    DEFAULT_PROVIDER: str = os.getenv("DEFAULT_PROVIDER", "openai")
    DATE_FORMAT: str = "%Y-%m-%d"

    # Timeouts (in seconds)
    PROVIDER_TIMEOUT: float = 60.0
    PROVIDER_CONNECT_TIMEOUT: float = 10.0

    # Connection pool
    MAX_PROVIDER_CONNECTIONS: int = 20

    # Token estimation strategy: "heuristic" or "tiktoken"
    TOKEN_ESTIMATOR: str = os.getenv("TOKEN_ESTIMATOR", "heuristic")
    TIKTOKEN_ENCODING: str = os.getenv("TIKTOKEN_ENCODING", "cl100k_base")

    # Models that accept a single multimodal turn per call
    VISION_ONLY_MODELS = [
        "gemini-pro-vision",
    ]

    @classmethod
    def is_vision_only_model(cls, model_name: str) -> bool:
        """Detect if the model only accepts one turn per call."""
        model_lower = model_name.lower()
        return any(
            model_lower == name or model_lower.startswith(f"{name}-")
            for name in cls.VISION_ONLY_MODELS
        )

    @classmethod
    def get_provider_api_key(cls, provider: str) -> str:
        """Get the API key configured for a provider ("" when none is needed or set)."""
        keys = {
            'openai': cls.OPENAI_API_KEY,
            'google': cls.GOOGLE_GEMINI_API_KEY,
        }
        return keys.get(provider, "")

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and print warnings for missing API keys."""
        if not cls.OPENAI_API_KEY:
            print("   WARNING: OPENAI_API_KEY not found in .env file")
            print("   Requests routed to the openai provider will be rejected upstream.")

        if not cls.GOOGLE_GEMINI_API_KEY:
            print("   WARNING: GOOGLE_GEMINI_API_KEY not found in .env file")
            print("   Requests routed to the google provider will be rejected upstream.")

        if cls.TOKEN_ESTIMATOR not in ("heuristic", "tiktoken"):
            print(f"   WARNING: Unknown TOKEN_ESTIMATOR '{cls.TOKEN_ESTIMATOR}', falling back to heuristic")

        if cls.DEFAULT_PROVIDER not in cls.PROVIDERS:
            print(f"   WARNING: Unknown DEFAULT_PROVIDER '{cls.DEFAULT_PROVIDER}', falling back to openai")
            cls.DEFAULT_PROVIDER = "openai"


Config.validate()
