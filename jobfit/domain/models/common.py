"""Defines common Value Objects used across different domain contexts.

These objects represent simple values or concepts like prompts, cache keys
and token counts, ensuring consistency and type safety.
"""

from typing import NewType, TypedDict

# === Core Value Objects ===

PromptText = NewType("PromptText", str)        # Prompt sent to the provider
AIResponse = NewType("AIResponse", str)        # Raw completion text from the provider
MessageRole = NewType("MessageRole", str)      # 'system', 'user', 'assistant'

# === Caching Context ===
CacheKey = NewType("CacheKey", str)            # SHA-256 fingerprint of a request

# === Persistence Context ===
RecordId = NewType("RecordId", str)            # Opaque id handed out by a repository
UserId = NewType("UserId", str)

# === Token Management ===
TokenCount = NewType("TokenCount", int)


class TokenUsage(TypedDict):
    """Represents token usage information from an AI call."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
