"""Domain models related to AI interactions.

Includes the message shape sent to providers and the structured response
handed back to the application.
"""

from typing import Optional, TypedDict
from dataclasses import dataclass

from .common import MessageRole, TokenUsage

# --- AI Interaction Structures ---

class ChatMessage(TypedDict):
    """Represents a message structure expected by chat completion APIs."""
    role: MessageRole
    content: str

@dataclass
class StructuredAIResponse:
    """Structured response from an AI model, including metadata."""
    content: str
    token_usage: Optional[TokenUsage] = None
    model_name: Optional[str] = None # Which model generated the response
    latency_ms: Optional[float] = None # Time taken for the API call
    finish_reason: Optional[str] = None
