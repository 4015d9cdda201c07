from datetime import datetime

from server.models.requests import CamelModel
from shared.models.chat import Conversation, Message, MessageRole, MessageSource
from shared.models.document import Document


class ErrorResponse(CamelModel):
    error: str


class MessageSourceItem(CamelModel):
    document_id: int
    title: str
    category: str | None = None
    tags: list[str] = []


class MessageResponse(CamelModel):
    id: int
    conversation_id: int
    role: MessageRole
    content: str
    sources: list[MessageSourceItem] | None = None
    created_at: datetime

    @classmethod
    def from_message(cls, message: Message) -> "MessageResponse":
        return cls.model_validate(message.model_dump())


class SourceItem(CamelModel):
    """Citation returned next to a chat answer."""

    id: int
    title: str
    category: str | None = None
    tags: list[str] = []

    @classmethod
    def from_source(cls, source: MessageSource) -> "SourceItem":
        return cls(id=source.document_id, title=source.title, category=source.category, tags=source.tags)


class ChatResponse(CamelModel):
    message: MessageResponse
    sources: list[SourceItem]


class ConversationResponse(CamelModel):
    id: int
    title: str
    owner_id: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> "ConversationResponse":
        return cls.model_validate(conversation.model_dump())


class DocumentResponse(CamelModel):
    """A stored document without its embedding."""

    id: int
    title: str
    content: str
    category: str | None = None
    tags: list[str] = []
    summary: str = ""
    owner_id: int | None = None
    created_at: datetime

    @classmethod
    def from_document(cls, document: Document) -> "DocumentResponse":
        return cls(
            id=document.id,
            title=document.title,
            content=document.content,
            category=document.metadata.category,
            tags=document.metadata.tags,
            summary=document.metadata.summary,
            owner_id=document.owner_id,
            created_at=document.created_at,
        )


class HealthResponse(CamelModel):
    status: str
    version: str
    documents: int
