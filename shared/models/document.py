"""Pydantic models for knowledge-base documents.

Hierarchy:
  DocumentMetadata  — classification result (category, tags, summary).
  NewDocument       — validated input for DocumentStoreInterface.insert().
  Document          — a stored document with id, timestamps and embedding.
"""

from datetime import datetime

from pydantic import BaseModel, Field

UNCATEGORIZED = "uncategorized"

DOCUMENT_CATEGORIES: tuple[str, ...] = (
    "best-practices",
    "frameworks",
    "incident-response",
    "compliance",
    "threat-intel",
)


class DocumentMetadata(BaseModel):
    """Classification metadata attached to each document.

    Only tags may change after the document has been stored.
    """

    category: str | None = UNCATEGORIZED
    tags: list[str] = []
    summary: str = ""


class NewDocument(BaseModel):
    """A document that has been classified and embedded but not yet stored."""

    title: str
    content: str
    embedding: list[float]
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)
    owner_id: int | None = None


class Document(BaseModel):
    """A stored document."""

    id: int
    title: str
    content: str
    embedding: list[float]
    metadata: DocumentMetadata
    created_at: datetime
    owner_id: int | None = None
