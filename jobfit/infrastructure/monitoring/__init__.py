"""Monitoring: logging setup and provider call statistics."""
