"""Conversation and message models.

A conversation is created lazily on a user's first question.  Messages are
append-only; the store keeps ``Conversation.last_message`` equal to the
truncated text of the newest message.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

TITLE_MAX_CHARS = 50
PREVIEW_MAX_CHARS = 100


class MessageRole(str, Enum):  # noqa: UP042
    USER = "user"
    MODEL = "model"


def derive_title(question: str) -> str:
    """Conversation title from the first question: 50 chars max, ellipsized."""
    question = question.strip()
    if len(question) <= TITLE_MAX_CHARS:
        return question
    return question[: TITLE_MAX_CHARS - 3] + "..."


def preview(text: str) -> str:
    return text[:PREVIEW_MAX_CHARS]


class Conversation(BaseModel):
    """A question/answer thread owned by one user."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    owner_id: str
    title: str
    last_message: str = Field(default="", description="First 100 characters of the newest message.")
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))


class Message(BaseModel):
    """One turn in a conversation."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    conversation_id: str
    owner_id: str
    role: MessageRole
    text: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))
