"""OpenAI adapter."""
