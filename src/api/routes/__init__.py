"""API route modules."""

from . import chat, health, upload

__all__ = ["chat", "health", "upload"]
