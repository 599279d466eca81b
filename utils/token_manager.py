"""
Token estimation utilities for context window handling.
Estimation is a pluggable strategy: a fast character/word heuristic by default,
or exact BPE counts through tiktoken.
"""
from abc import ABC, abstractmethod

import tiktoken

from config import Config
from models.chat_models import ProviderMessage
from utils.logger import app_logger


class TokenEstimator(ABC):
    """Maps text to an approximate provider token count."""

    name: str = "base"

    @abstractmethod
    def estimate(self, text: str) -> int:
        """Return the estimated token count for the given text (0 for empty text)."""
        ...


class HeuristicTokenEstimator(TokenEstimator):
    """Character-based approximation blended with word count."""

    name = "heuristic"

    def estimate(self, text: str) -> int:
        if not text:
            return 0

        char_estimate = len(text) // 4
        word_estimate = len(text.split())

        return int((char_estimate * 0.6) + (word_estimate * 0.4))


class TiktokenEstimator(TokenEstimator):
    """Exact counts from a tiktoken encoding, loaded on first use."""

    name = "tiktoken"

    def __init__(self, encoding_name: str | None = None):
        self.encoding_name = encoding_name or Config.TIKTOKEN_ENCODING
        self._encoding = None

    @property
    def encoding(self) -> tiktoken.Encoding:
        if self._encoding is None:
            self._encoding = tiktoken.get_encoding(self.encoding_name)
            app_logger.info(f"Token estimator initialized with {self.encoding_name} encoding")
        return self._encoding

    def estimate(self, text: str) -> int:
        if not text:
            return 0
        return len(self.encoding.encode(text, disallowed_special=()))


def get_token_estimator(name: str | None = None) -> TokenEstimator:
    """Build the token estimator strategy with the given name (Config.TOKEN_ESTIMATOR by default)."""
    name = (name or Config.TOKEN_ESTIMATOR).lower()

    if name == TiktokenEstimator.name:
        return TiktokenEstimator()

    if name != HeuristicTokenEstimator.name:
        app_logger.warning(f"Unknown token estimator '{name}', using heuristic")

    return HeuristicTokenEstimator()


class TokenManager:
    """Message-level token accounting on top of a TokenEstimator."""

    def __init__(self, estimator: TokenEstimator | None = None):
        self.estimator = estimator or get_token_estimator()

    @staticmethod
    def message_text(message: ProviderMessage) -> str:
        """Textual content of a message; image parts are skipped."""
        content = message.get('content', '')
        if isinstance(content, str):
            return content

        return "".join(part['text'] for part in content if part.get('type') == 'text')

    def estimate_tokens(self, text: str) -> int:
        """Estimate token count for text."""
        return self.estimator.estimate(text)

    def estimate_message_tokens(self, message: ProviderMessage) -> int:
        """Estimate token count for a single message (text only)."""
        return self.estimator.estimate(self.message_text(message))

    def calculate_messages_tokens(self, messages: list[ProviderMessage]) -> int:
        """Calculate total tokens for a list of messages."""
        return sum(self.estimate_message_tokens(msg) for msg in messages)
