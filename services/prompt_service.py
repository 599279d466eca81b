"""
Prompt service containing request assembly logic.
Builds the system prompt, converts stored history into provider-agnostic
messages and trims history to the model's context length.
"""
from datetime import datetime
from typing import Callable, Optional

from config import Config
from models.api_models import ChatPayload, FileRetrievalItem, Profile, StoredMessage
from models.chat_models import ContentPart, ProviderMessage
from utils.constants import (
    DATE_LINE_TEMPLATE,
    PERSONA_ROLE_TEMPLATE,
    PROFILE_CONTEXT_TEMPLATE,
    RETRIEVAL_PREAMBLE,
    SECTION_SEPARATOR,
    SOURCE_BEGIN_MARKER,
    SOURCE_END_MARKER,
    WORKSPACE_INSTRUCTIONS_TEMPLATE,
    Role
)
from utils.image_cache import ImageCache
from utils.logger import app_logger
from utils.token_manager import TokenEstimator, TokenManager


class PromptService:
    """Assembles the ordered, budget-bounded message list for one request."""

    def __init__(
        self,
        estimator: Optional[TokenEstimator] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.token_manager = TokenManager(estimator)
        self.clock = clock or datetime.now

    def build_system_prompt(self, payload: ChatPayload, profile: Profile) -> str:
        """
        Build the system prompt text.

        Sections, in order and only when gated in: base or persona prompt,
        current date, profile context, workspace instructions. When an
        assistant persona is set, its include flags decide the gates.
        """
        settings = payload.chat_settings
        assistant = payload.assistant
        sections = []

        if assistant:
            sections.append(PERSONA_ROLE_TEMPLATE.format(name=assistant.name))
            base_prompt = assistant.prompt or settings.prompt
            include_profile = assistant.include_profile_context
            include_workspace = assistant.include_workspace_instructions
        else:
            base_prompt = settings.prompt
            include_profile = settings.include_profile_context
            include_workspace = settings.include_workspace_instructions

        if base_prompt:
            sections.append(base_prompt)

        sections.append(DATE_LINE_TEMPLATE.format(
            current_date=self.clock().strftime(Config.DATE_FORMAT)
        ))

        if include_profile and profile.profile_context:
            sections.append(PROFILE_CONTEXT_TEMPLATE.format(profile_context=profile.profile_context))

        if include_workspace and payload.workspace_instructions:
            sections.append(WORKSPACE_INSTRUCTIONS_TEMPLATE.format(
                workspace_instructions=payload.workspace_instructions
            ))

        return SECTION_SEPARATOR.join(sections)

    @staticmethod
    def build_retrieval_text(file_items: list[FileRetrievalItem]) -> str:
        """Wrap each retrieved item in explicit source markers."""
        sources = SECTION_SEPARATOR.join(
            f"{SOURCE_BEGIN_MARKER}\n{item.content}\n{SOURCE_END_MARKER}"
            for item in file_items
        )
        return f"{RETRIEVAL_PREAMBLE}{SECTION_SEPARATOR}{sources}"

    def build_message(
        self,
        message: StoredMessage,
        image_cache: ImageCache,
        file_items: list[FileRetrievalItem]
    ) -> ProviderMessage:
        """Convert one stored message, appending retrieval text and resolved images."""
        text = message.content

        if file_items:
            if message.role == Role.USER:
                text = f"{text}{SECTION_SEPARATOR}{self.build_retrieval_text(file_items)}"
            else:
                app_logger.debug(f"Ignoring {len(file_items)} file items attached to {message.role} message")

        if not message.image_paths:
            return {"role": message.role, "content": text}

        parts: list[ContentPart] = [{"type": "text", "text": text}]
        for path in message.image_paths:
            attachment = image_cache.resolve(path)
            if attachment is not None:
                parts.append(attachment.to_part())

        dropped = len(message.image_paths) - (len(parts) - 1)
        if dropped:
            app_logger.info(f"Dropped {dropped} unresolvable image(s) from {message.role} message")

        return {"role": message.role, "content": parts}

    def trim_to_context_length(
        self,
        system_message: ProviderMessage,
        history: list[ProviderMessage],
        context_length: int
    ) -> list[ProviderMessage]:
        """
        Keep the most recent messages that fit in the context length.

        1. The system message cost is always counted and never trimmed
        2. Walk history from newest to oldest, stopping at the first message that overflows
        3. The newest message is kept even if it alone exceeds the budget

        Returns:
            Kept history in chronological order (system message not included)
        """
        tokens_used = self.token_manager.estimate_message_tokens(system_message)
        kept = []

        for msg in reversed(history):
            msg_tokens = self.token_manager.estimate_message_tokens(msg)

            if kept and tokens_used + msg_tokens > context_length:
                break

            kept.append(msg)
            tokens_used += msg_tokens

        kept.reverse()

        messages_dropped = len(history) - len(kept)
        if messages_dropped > 0:
            app_logger.info(
                f"Truncated history: kept {len(kept)}/{len(history)} messages "
                f"({tokens_used}/{context_length} tokens)"
            )

        return kept

    def build_final_messages(
        self,
        payload: ChatPayload,
        profile: Profile,
        image_cache: Optional[ImageCache] = None
    ) -> list[ProviderMessage]:
        """
        Build the final provider-agnostic message list.

        Args:
            payload: Settings, persona, workspace instructions and history
            profile: Profile of the requesting user
            image_cache: Resolved images; built from payload.chat_images when omitted

        Returns:
            System message followed by the kept history, oldest first
        """
        if image_cache is None:
            image_cache = ImageCache(payload.chat_images)

        system_message: ProviderMessage = {
            "role": Role.SYSTEM,
            "content": self.build_system_prompt(payload, profile)
        }

        # Retrieval results for the current turn belong to the latest user message
        latest_user_index = None
        if payload.message_file_items:
            for index in range(len(payload.chat_messages) - 1, -1, -1):
                if payload.chat_messages[index].role == Role.USER:
                    latest_user_index = index
                    break

        history = []
        for index, message in enumerate(payload.chat_messages):
            file_items = list(message.file_items)
            if index == latest_user_index:
                file_items.extend(payload.message_file_items)
            history.append(self.build_message(message, image_cache, file_items))

        kept = self.trim_to_context_length(
            system_message,
            history,
            payload.chat_settings.context_length
        )

        return [system_message] + kept


def build_final_messages(
    payload: ChatPayload,
    profile: Profile,
    image_cache: Optional[ImageCache] = None
) -> list[ProviderMessage]:
    """Assemble messages with the configured token estimator and the system clock."""
    return PromptService().build_final_messages(payload, profile, image_cache)
