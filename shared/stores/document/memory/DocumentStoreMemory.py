"""In-process document store with exact nearest-neighbour search.

Distances are Euclidean (L2), matching the "<->" operator of pgvector that
the hosted deployment used. At a few thousand documents a full scan with
numpy plus a bounded heap selection answers well within a request budget.
"""

import heapq
from datetime import datetime, timezone

import numpy as np

from shared.helper.HelperConfig import HelperConfig
from shared.helper.text_helper import normalize_content, normalize_tags
from shared.models.document import Document, DocumentMetadata, NewDocument
from shared.models.errors import NotFound, ValidationFailure
from shared.stores.document.DocumentStoreInterface import DocumentStoreInterface


class DocumentStoreMemory(DocumentStoreInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        # dicts keep insertion order, and ids grow monotonically, so the id
        # doubles as the insertion sequence for tie-breaking
        self._documents: dict[int, Document] = {}
        self._vectors: dict[int, np.ndarray] = {}
        self._next_id = 1

    ##########################################
    ################ GETTER ##################
    ##########################################

    def _get_engine_name(self) -> str:
        return "Memory"

    def _get_distance_metric(self) -> str:
        return "Euclidean"

    ##########################################
    ################ WRITES ##################
    ##########################################

    async def insert(self, document: NewDocument) -> Document:
        title = (document.title or "").strip()
        if not title:
            raise ValidationFailure("Document title must not be empty.")
        content = normalize_content(document.content)
        if not content:
            raise ValidationFailure("Document content is empty after normalisation.")
        vector = self._to_vector(document.embedding)
        if self.dimensions is None:
            self.dimensions = vector.shape[0]
            self.logging.info("Document store dimension fixed to %d by first insert.", self.dimensions)
        elif vector.shape[0] != self.dimensions:
            raise ValidationFailure(
                f"Embedding has {vector.shape[0]} dimensions, the store expects {self.dimensions}."
            )

        metadata = document.metadata.model_copy(update={"tags": normalize_tags(document.metadata.tags)})
        stored = Document(
            id=self._next_id,
            title=title,
            content=content,
            embedding=vector.tolist(),
            metadata=metadata,
            created_at=datetime.now(timezone.utc),
            owner_id=document.owner_id,
        )
        self._documents[stored.id] = stored
        self._vectors[stored.id] = vector
        self._next_id += 1

        self.logging.debug("Stored document id=%d title=%r", stored.id, stored.title[:80])
        return stored.model_copy(deep=True)

    async def delete(self, document_id: int) -> None:
        removed = self._documents.pop(document_id, None)
        self._vectors.pop(document_id, None)
        if removed is not None:
            self.logging.info("Deleted document id=%d", document_id)

    async def update_tags(self, document_id: int, tags: list[str]) -> Document:
        current = self._documents.get(document_id)
        if current is None:
            raise NotFound(f"Document {document_id} not found.", public_message="Document not found.")
        metadata: DocumentMetadata = current.metadata.model_copy(update={"tags": normalize_tags(tags)})
        updated = current.model_copy(update={"metadata": metadata})
        self._documents[document_id] = updated
        return updated.model_copy(deep=True)

    ##########################################
    ################ READS ###################
    ##########################################

    async def get(self, document_id: int) -> Document | None:
        document = self._documents.get(document_id)
        return document.model_copy(deep=True) if document is not None else None

    async def list_all(self) -> list[Document]:
        return [doc.model_copy(deep=True) for doc in self._documents.values()]

    async def list_by_owner(self, owner_id: int) -> list[Document]:
        return [doc.model_copy(deep=True) for doc in self._documents.values() if doc.owner_id == owner_id]

    async def nearest_neighbors(self, query_embedding: list[float], k: int) -> list[Document]:
        if k < 1:
            raise ValidationFailure(f"k must be at least 1, got {k}.")
        query = self._to_vector(query_embedding)
        if not self._documents:
            return []
        if query.shape[0] != self.dimensions:
            raise ValidationFailure(
                f"Query embedding has {query.shape[0]} dimensions, the store expects {self.dimensions}."
            )

        ids = list(self._vectors.keys())
        matrix = np.vstack([self._vectors[doc_id] for doc_id in ids])
        distances = np.linalg.norm(matrix - query, axis=1)

        # (distance, id) keys: equal distances fall back to insertion order
        nearest = heapq.nsmallest(k, zip(distances.tolist(), ids))
        self.logging.debug(
            "Nearest neighbours: k=%d scanned=%d best=%s",
            k, len(ids), f"{nearest[0][0]:.4f}" if nearest else "n/a",
        )
        return [self._documents[doc_id].model_copy(deep=True) for _, doc_id in nearest]

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _to_vector(self, embedding: list[float]) -> np.ndarray:
        """Convert an embedding into a 1-D float64 array, rejecting empty or non-finite input."""
        if embedding is None or len(embedding) == 0:
            raise ValidationFailure("Embedding must not be empty.")
        vector = np.asarray(embedding, dtype=np.float64)
        if vector.ndim != 1:
            raise ValidationFailure("Embedding must be a flat list of numbers.")
        if not np.all(np.isfinite(vector)):
            raise ValidationFailure("Embedding contains non-finite values.")
        return vector
