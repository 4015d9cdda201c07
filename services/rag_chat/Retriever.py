"""Retriever: concurrent query improvement + embedding, then nearest-neighbour search."""

import asyncio
from dataclasses import dataclass, field

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Document
from shared.models.errors import RetrievalFailure
from shared.stores.document.DocumentStoreInterface import DocumentStoreInterface
from services.rag_chat.QueryImprover import QueryImprover


@dataclass
class RetrievalResult:
    """Ranked documents (nearest first) plus the improved query for the prompt."""

    improved_query: str
    documents: list[Document] = field(default_factory=list)


class Retriever:
    """Produces the ranked candidate documents for one chat turn.

    The vector search uses the embedding of the raw query, not the improved
    one: the improved text only feeds the generation prompt, so the search
    stays anchored to what the user literally asked.
    """

    def __init__(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientInterface,
        document_store: DocumentStoreInterface,
        query_improver: QueryImprover,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._embed = embed_client
        self._store = document_store
        self._improver = query_improver

    async def retrieve(self, raw_query: str, k: int) -> RetrievalResult:
        """Retrieve up to k documents for raw_query.

        Args:
            raw_query (str): The user's question.
            k (int): Maximum number of documents.

        Returns:
            RetrievalResult: Improved query and ranked documents.

        Raises:
            RetrievalFailure: If improvement, embedding or search fails. The
                original error is chained as __cause__.
        """
        # both calls always run to completion so no task is left dangling
        improved, embedding = await asyncio.gather(
            self._improver.improve(raw_query),
            self._embed.embed(raw_query),
            return_exceptions=True,
        )
        for outcome in (embedding, improved):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                raise RetrievalFailure(f"Retrieval failed: {outcome}") from outcome

        try:
            documents = await self._store.nearest_neighbors(embedding, k)
        except Exception as e:
            raise RetrievalFailure(f"Nearest-neighbour search failed: {e}") from e

        self.logging.info(
            "Retrieved %d document(s) for query=%r", len(documents), raw_query[:80]
        )
        return RetrievalResult(improved_query=improved, documents=documents)
