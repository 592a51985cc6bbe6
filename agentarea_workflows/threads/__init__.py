"""Conversation threads."""

from .conversation import ConversationThread

__all__ = ["ConversationThread"]
