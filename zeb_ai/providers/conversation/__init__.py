"""Conversation persistence implementations."""

from zeb_ai.providers.conversation.sqlite_conversation_store import SQLiteConversationStore

__all__ = ["SQLiteConversationStore"]
