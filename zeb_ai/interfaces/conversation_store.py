"""Abstract base class for conversation persistence.

Conversation history is owned by an external collaborator; the core only
creates threads and appends messages.  Every read is scoped to the owning
user, so a foreign conversation id behaves exactly like an unknown one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from zeb_ai.models.conversation import Conversation, Message, MessageRole


# Concrete implementation: SQLiteConversationStore (zeb_ai/providers/conversation/)
class IConversationStore(ABC):
    """Contract for conversation and message storage."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables and indices if they do not exist."""

    @abstractmethod
    async def create_conversation(self, owner_id: str, title: str) -> Conversation:
        """Create and return an empty conversation."""

    @abstractmethod
    async def find_conversation(self, conversation_id: str, owner_id: str) -> Conversation | None:
        """Return the conversation if it exists and belongs to *owner_id*."""

    @abstractmethod
    async def append_message(
        self,
        conversation_id: str,
        owner_id: str,
        role: MessageRole,
        text: str,
    ) -> Message:
        """Append a message and refresh the conversation's ``last_message``.

        Both writes happen in one transaction.

        Raises
        ------
        zeb_ai.utils.errors.ConversationNotFoundError
            If the conversation does not exist for *owner_id*.
        zeb_ai.utils.errors.PersistenceError
            If the write fails.
        """

    @abstractmethod
    async def list_conversations(self, owner_id: str) -> list[Conversation]:
        """Return the owner's conversations, most recently updated first."""

    @abstractmethod
    async def list_messages(self, conversation_id: str, owner_id: str) -> list[Message]:
        """Return a conversation's messages, oldest first.

        Raises
        ------
        zeb_ai.utils.errors.ConversationNotFoundError
            If the conversation does not exist for *owner_id*.
        """

    @abstractmethod
    async def delete_conversation(self, conversation_id: str, owner_id: str) -> bool:
        """Delete a conversation and its messages; ``False`` if not found."""
