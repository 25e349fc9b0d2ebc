"""Concrete implementation of the AIModel interface using the OpenAI API.

Hides the specifics of the OpenAI client library and translates requests/
responses between the domain model and the OpenAI API format. SDK errors
are logged and re-raised untouched; retrying and classifying them is the
caller's job.
"""

import asyncio
import logging
import os
import time
from typing import Any, List, Optional

from openai import OpenAI, APIError, APIResponseValidationError, AuthenticationError, RateLimitError

from jobfit.domain.interfaces.ai_model import AIModel
from jobfit.domain.models.ai import ChatMessage, StructuredAIResponse
from jobfit.domain.models.common import TokenUsage

logger = logging.getLogger(__name__)


class GptClient(AIModel):
    """OpenAI implementation of the AIModel interface."""

    provider_name = "openai"
    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout: float = 60.0,
    ):
        """Initializes the OpenAI client.

        Args:
            api_key: OpenAI API key. Reads from OPENAI_API_KEY env var if None.
            model: The OpenAI model to use.
            temperature: Sampling temperature for completions.
            max_tokens: Completion token budget.
            timeout: Per-request transport timeout in seconds.
        """
        effective_api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not effective_api_key:
            raise ValueError("OpenAI API key not provided and not found in environment variables.")

        # The SDK's own retries are disabled: BackoffExecutor owns the retry policy
        self.client = OpenAI(api_key=effective_api_key, timeout=timeout, max_retries=0)
        self.model = model or self.DEFAULT_MODEL
        self.temperature = temperature
        self.max_tokens = max_tokens
        logger.info(f"GptClient initialized for model: {self.model}")

    def _parse_openai_response(self, response: Any) -> StructuredAIResponse:
        """Parses the response object from OpenAI API call."""
        try:
            choice = response.choices[0]
            content = choice.message.content or ""

            token_usage = None
            if response.usage:
                token_usage = TokenUsage(
                    prompt_tokens=response.usage.prompt_tokens,
                    completion_tokens=response.usage.completion_tokens,
                    total_tokens=response.usage.total_tokens
                )

            return StructuredAIResponse(
                content=content,
                token_usage=token_usage,
                model_name=getattr(response, "model", None) or self.model,
                finish_reason=getattr(choice, "finish_reason", None),
            )
        except (AttributeError, IndexError, KeyError, TypeError) as e:
            logger.error(f"Failed to parse OpenAI response structure: {e}", exc_info=True)
            logger.debug(f"Raw OpenAI response object: {response}")
            raise ValueError(f"Invalid response structure from OpenAI: {e}") from e

    async def send_messages(self, messages: List[ChatMessage]) -> StructuredAIResponse:
        """Sends messages to the configured OpenAI model asynchronously."""
        logger.debug(f"Sending {len(messages)} messages to OpenAI model: {self.model}")
        start_time = time.perf_counter()
        try:
            # The SDK call is synchronous; keep the event loop free while it runs
            response = await asyncio.to_thread(
                self.client.chat.completions.create,
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except AuthenticationError as e:
            logger.error(f"OpenAI Authentication Error: {e}")
            raise
        except RateLimitError as e:
            logger.warning(f"OpenAI Rate Limit Error encountered: {e}")
            raise
        except APIResponseValidationError as e:
            logger.error(f"OpenAI response validation error: {e}")
            raise
        except APIError as e:
            logger.warning(f"OpenAI API Error encountered (Status: {getattr(e, 'status_code', None)}): {e}")
            raise

        latency_ms = (time.perf_counter() - start_time) * 1000
        structured_response = self._parse_openai_response(response)
        structured_response.latency_ms = latency_ms
        logger.debug(f"Received response from OpenAI in {latency_ms:.2f}ms. Usage: {structured_response.token_usage}")
        return structured_response
