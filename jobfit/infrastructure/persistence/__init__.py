"""Persistence adapters for match records."""
