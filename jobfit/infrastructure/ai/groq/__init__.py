"""Groq adapter."""
