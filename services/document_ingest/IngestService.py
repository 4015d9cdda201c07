"""Ingest service: adds documents to the knowledge base and maintains them."""

import asyncio

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.text_helper import normalize_content
from shared.models.document import Document, NewDocument
from shared.models.errors import NotFound, ValidationFailure
from shared.stores.document.DocumentStoreInterface import DocumentStoreInterface
from services.document_ingest.DocumentClassifier import DocumentClassifier


class IngestService:
    def __init__(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientInterface,
        document_store: DocumentStoreInterface,
        classifier: DocumentClassifier,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._embed = embed_client
        self._store = document_store
        self._classifier = classifier

    async def do_ingest(self, title: str, content: str, owner_id: int | None = None) -> Document:
        """Classify, embed and store one document.

        Classification and embedding run concurrently. The embedding is
        computed from "title\\ncontent" so that the title takes part in
        similarity search.

        Args:
            title (str): Document title.
            content (str): Raw document text.
            owner_id (int | None): Uploading user.

        Returns:
            Document: The stored document.

        Raises:
            ValidationFailure: If title or content is empty after normalisation.
            EmbeddingFailure | GenerationFailure | MalformedResponseFailure:
                If classification or embedding fails. Nothing is stored.
        """
        title = (title or "").strip()
        content = normalize_content(content)
        if not title:
            raise ValidationFailure("Document title must not be empty.")
        if not content:
            raise ValidationFailure("Document content is empty.")

        self.logging.info("Ingesting document %r (%d chars)...", title[:80], len(content))
        metadata, embedding = await asyncio.gather(
            self._classifier.classify(content),
            self._embed.embed(f"{title}\n{content}"),
            return_exceptions=True,
        )
        for outcome in (metadata, embedding):
            if isinstance(outcome, BaseException):
                self.logging.error("Ingestion of %r failed: %s", title[:80], outcome)
                raise outcome

        document = await self._store.insert(
            NewDocument(
                title=title,
                content=content,
                embedding=embedding,
                metadata=metadata,
                owner_id=owner_id,
            )
        )
        self.logging.info(
            "Stored document id=%d category=%s tags=%s",
            document.id, document.metadata.category, document.metadata.tags, color="green",
        )
        return document

    async def do_list(self, owner_id: int | None = None) -> list[Document]:
        """All documents, or only those uploaded by owner_id."""
        if owner_id is None:
            return await self._store.list_all()
        return await self._store.list_by_owner(owner_id)

    async def do_get(self, document_id: int) -> Document:
        document = await self._store.get(document_id)
        if document is None:
            raise NotFound(f"Document {document_id} not found.", public_message="Document not found.")
        return document

    async def do_delete(self, document_id: int) -> None:
        await self._store.delete(document_id)

    async def do_update_tags(self, document_id: int, tags: list[str]) -> Document:
        document = await self._store.update_tags(document_id, tags)
        self.logging.info("Updated tags of document id=%d: %s", document_id, document.metadata.tags)
        return document
