"""SQLite-backed conversation store.

Persists conversations and their messages through ``aiosqlite``.  Appending
a message and refreshing the owning conversation's ``last_message`` and
``updated_at`` happen in one transaction, so the preview always matches the
newest message.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite
import structlog

from zeb_ai.interfaces.conversation_store import IConversationStore
from zeb_ai.models.conversation import Conversation, Message, MessageRole, preview
from zeb_ai.utils.errors import ConversationNotFoundError, PersistenceError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/zeb_ai.db")
_PROVIDER_NAME = "sqlite_conversations"

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS conversations (
    id            TEXT PRIMARY KEY,
    owner_id      TEXT NOT NULL,
    title         TEXT NOT NULL,
    last_message  TEXT NOT NULL DEFAULT '',
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS messages (
    id               TEXT PRIMARY KEY,
    conversation_id  TEXT NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
    owner_id         TEXT NOT NULL,
    role             TEXT NOT NULL,
    text             TEXT NOT NULL,
    created_at       TEXT NOT NULL,
    seq              INTEGER NOT NULL
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_conversations_owner ON conversations(owner_id, updated_at);",
    "CREATE INDEX IF NOT EXISTS idx_messages_conversation ON messages(conversation_id, seq);",
]

_SELECT_CONVERSATION_SQL = (
    "SELECT id, owner_id, title, last_message, created_at, updated_at "
    "FROM conversations WHERE id = ? AND owner_id = ?"
)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class SQLiteConversationStore(IConversationStore):
    """SQLite-backed conversation persistence, scoped per owner."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("PRAGMA foreign_keys = ON")
                yield db
        except aiosqlite.Error as exc:
            raise PersistenceError(
                message=f"Conversation store error: {exc}",
                provider_name=_PROVIDER_NAME,
            ) from exc

    # ------------------------------------------------------------------
    # IConversationStore implementation
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Create the conversation tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("conversation_db_initialized", path=str(self._db_path))

    async def create_conversation(self, owner_id: str, title: str) -> Conversation:
        conversation = Conversation(owner_id=owner_id, title=title)
        async with self._connect() as db:
            await db.execute(
                "INSERT INTO conversations (id, owner_id, title, last_message, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    conversation.id,
                    conversation.owner_id,
                    conversation.title,
                    conversation.last_message,
                    conversation.created_at.isoformat(),
                    conversation.updated_at.isoformat(),
                ),
            )
            await db.commit()
        logger.info("conversation_created", conversation_id=conversation.id, owner_id=owner_id)
        return conversation

    async def find_conversation(self, conversation_id: str, owner_id: str) -> Conversation | None:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_CONVERSATION_SQL, (conversation_id, owner_id))
            row = await cursor.fetchone()
        return Conversation.model_validate(dict(row)) if row else None

    async def append_message(
        self,
        conversation_id: str,
        owner_id: str,
        role: MessageRole,
        text: str,
    ) -> Message:
        """Insert a message and update the conversation preview atomically."""
        message = Message(
            conversation_id=conversation_id,
            owner_id=owner_id,
            role=role,
            text=text,
        )
        async with self._connect() as db:
            cursor = await db.execute(
                "UPDATE conversations SET last_message = ?, updated_at = ? "
                "WHERE id = ? AND owner_id = ?",
                (preview(text), message.created_at.isoformat(), conversation_id, owner_id),
            )
            if cursor.rowcount == 0:
                await db.rollback()
                raise ConversationNotFoundError(
                    message=f"Conversation {conversation_id} not found",
                    provider_name=_PROVIDER_NAME,
                )
            await db.execute(
                "INSERT INTO messages (id, conversation_id, owner_id, role, text, created_at, seq) "
                "VALUES (?, ?, ?, ?, ?, ?, "
                "(SELECT COALESCE(MAX(seq), 0) + 1 FROM messages WHERE conversation_id = ?))",
                (
                    message.id,
                    conversation_id,
                    owner_id,
                    message.role.value,
                    message.text,
                    message.created_at.isoformat(),
                    conversation_id,
                ),
            )
            await db.commit()
        return message

    async def list_conversations(self, owner_id: str) -> list[Conversation]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT id, owner_id, title, last_message, created_at, updated_at "
                "FROM conversations WHERE owner_id = ? ORDER BY updated_at DESC, id",
                (owner_id,),
            )
            rows = await cursor.fetchall()
        return [Conversation.model_validate(dict(r)) for r in rows]

    async def list_messages(self, conversation_id: str, owner_id: str) -> list[Message]:
        async with self._connect() as db:
            cursor = await db.execute(_SELECT_CONVERSATION_SQL, (conversation_id, owner_id))
            if await cursor.fetchone() is None:
                raise ConversationNotFoundError(
                    message=f"Conversation {conversation_id} not found",
                    provider_name=_PROVIDER_NAME,
                )
            cursor = await db.execute(
                "SELECT id, conversation_id, owner_id, role, text, created_at "
                "FROM messages WHERE conversation_id = ? ORDER BY seq",
                (conversation_id,),
            )
            rows = await cursor.fetchall()
        return [Message.model_validate(dict(r)) for r in rows]

    async def delete_conversation(self, conversation_id: str, owner_id: str) -> bool:
        """Delete a conversation and all of its messages."""
        async with self._connect() as db:
            cursor = await db.execute(
                "DELETE FROM conversations WHERE id = ? AND owner_id = ?",
                (conversation_id, owner_id),
            )
            if cursor.rowcount == 0:
                return False
            await db.execute("DELETE FROM messages WHERE conversation_id = ?", (conversation_id,))
            await db.commit()
        logger.info("conversation_deleted", conversation_id=conversation_id)
        return True

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
        return _PROVIDER_NAME
