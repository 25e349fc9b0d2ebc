"""Interface for AI Language Models (LLMs).

Defines the contract for sending messages to the inference provider
(e.g., OpenAI GPT, Groq Llama).
"""

import abc
from typing import List

from ..models.ai import ChatMessage, StructuredAIResponse


class AIModel(abc.ABC):
    """Abstract Base Class for AI language model interactions."""

    provider_name: str = "ai"

    @abc.abstractmethod
    async def send_messages(self, messages: List[ChatMessage]) -> StructuredAIResponse:
        """Sends a list of messages to the AI model asynchronously.

        Args:
            messages: A list of ChatMessage objects (system instruction + user prompt).

        Returns:
            A StructuredAIResponse containing the completion and metadata.

        Raises:
            Exception: The provider SDK's own exceptions, unmodified. They are
                classified by the caller, not here.
        """
        pass
