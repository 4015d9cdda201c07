from shared.models.document import UNCATEGORIZED, Document

DOCUMENT_DELIMITER = "\n---\n"


class ContextAssembler:
    """Formats retrieved documents into the context block of the answer prompt.

    assemble() is a pure function of its input: the same documents in the
    same order always produce the same string.
    """

    def assemble(self, documents: list[Document]) -> str:
        """Render documents nearest-first, separated by a delimiter line.

        Args:
            documents (list[Document]): Ranked documents from the Retriever.

        Returns:
            str: The context block; "" when no documents were retrieved.
        """
        return DOCUMENT_DELIMITER.join(self._format_document(doc) for doc in documents)

    def _format_document(self, document: Document) -> str:
        category = document.metadata.category or UNCATEGORIZED
        return f"Title: {document.title}\nCategory: {category}\n{document.content}"
