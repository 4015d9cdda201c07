"""Pydantic models for conversations and their messages."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    ERROR = "error"


class MessageSource(BaseModel):
    """Citation of a retrieved document; deliberately without the content."""

    document_id: int
    title: str
    category: str | None = None
    tags: list[str] = []


class Conversation(BaseModel):
    id: int
    title: str
    owner_id: int
    created_at: datetime
    updated_at: datetime


class Message(BaseModel):
    """A single append-only message. sources is only set on assistant messages."""

    id: int
    conversation_id: int
    role: MessageRole
    content: str
    sources: list[MessageSource] | None = None
    created_at: datetime
