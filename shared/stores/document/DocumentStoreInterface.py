from abc import ABC, abstractmethod

from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Document, NewDocument


class DocumentStoreInterface(ABC):
    """Persistence and nearest-neighbour search over embedded documents.

    The contract of nearest_neighbors() is "the k closest documents under a
    fixed distance metric, ties in insertion order". Whether an implementation
    scans linearly or uses an approximate index is its own business.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        dimensions = helper_config.get_number_val("EMBED_DIMENSIONS", default=0)
        # 0 means "fixed by the first inserted document"
        self.dimensions: int | None = int(dimensions) or None

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_engine_name(self) -> str:
        """
        Returns the name of the storage engine. E.g. "memory"
        """
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    def get_distance_metric(self) -> str:
        """
        Returns the distance metric used for ranking. E.g. "euclidean"
        """
        return self._get_distance_metric().lower()

    @abstractmethod
    def _get_distance_metric(self) -> str:
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    @abstractmethod
    async def insert(self, document: NewDocument) -> Document:
        """Store a document.

        Args:
            document (NewDocument): Title, content, embedding and metadata.

        Returns:
            Document: The stored document with its assigned id.

        Raises:
            ValidationFailure: If the content is empty after normalisation or
                the embedding dimension does not match the store.
        """
        pass

    @abstractmethod
    async def get(self, document_id: int) -> Document | None:
        """Return a document by id, or None."""
        pass

    @abstractmethod
    async def list_all(self) -> list[Document]:
        """Return all documents in insertion order."""
        pass

    @abstractmethod
    async def list_by_owner(self, owner_id: int) -> list[Document]:
        """Return the documents uploaded by one user in insertion order."""
        pass

    @abstractmethod
    async def nearest_neighbors(self, query_embedding: list[float], k: int) -> list[Document]:
        """Return up to k documents ordered by ascending distance.

        Args:
            query_embedding (list[float]): Vector of the store's dimension.
            k (int): Maximum number of documents (>= 1).

        Returns:
            list[Document]: min(k, size) documents; [] for an empty store.

        Raises:
            ValidationFailure: If k < 1 or the query dimension does not match.
        """
        pass

    @abstractmethod
    async def delete(self, document_id: int) -> None:
        """Remove a document. Deleting a missing id is not an error."""
        pass

    @abstractmethod
    async def update_tags(self, document_id: int, tags: list[str]) -> Document:
        """Replace the tag set of a document, leaving all other fields untouched.

        Raises:
            NotFound: If the document does not exist.
        """
        pass
