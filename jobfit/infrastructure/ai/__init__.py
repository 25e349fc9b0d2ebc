"""AI provider adapters (OpenAI, Groq)."""
