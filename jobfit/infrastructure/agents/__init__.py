"""Agents that post-process provider output."""
