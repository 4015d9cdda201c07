"""Document classifier: derives category, tags and a summary with the chat model."""

from pydantic import BaseModel, Field, ValidationError

from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.text_helper import extract_json_object, normalize_tags, truncate_text
from shared.models.document import DOCUMENT_CATEGORIES, UNCATEGORIZED, DocumentMetadata
from shared.models.errors import MalformedResponseFailure
from services.rag_chat.prompts import DOCUMENT_CLASSIFIER_SYSTEM_PROMPT


class ClassificationReply(BaseModel):
    """Schema of the model's classification reply."""

    tags: list[str] = []
    category: str | None = None
    summary: str = ""
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)


class DocumentClassifier:
    def __init__(
        self,
        helper_config: HelperConfig,
        llm_client: LLMClientInterface,
        domain: str = "cybersecurity",
        max_chars: int = 12000,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._llm = llm_client
        self._domain = domain
        self._max_chars = int(max_chars)

    async def classify(self, text: str) -> DocumentMetadata:
        """Classify a document.

        Args:
            text (str): Normalised document text; longer input is truncated.

        Returns:
            DocumentMetadata: Category from the fixed list (unknown values
                become "uncategorized"), normalised tags and the summary.

        Raises:
            GenerationFailure: If the model call fails.
            MalformedResponseFailure: If the reply is not a valid classification.
        """
        system = DOCUMENT_CLASSIFIER_SYSTEM_PROMPT.format(
            domain=self._domain,
            categories=", ".join(f'"{c}"' for c in DOCUMENT_CATEGORIES),
        )
        messages = [
            {"role": "system", "content": system},
            {"role": "user", "content": truncate_text(text, self._max_chars)},
        ]
        raw = await self._llm.do_chat(messages, json_mode=True)

        try:
            reply = ClassificationReply.model_validate(extract_json_object(raw))
        except (ValueError, ValidationError) as e:
            raise MalformedResponseFailure(f"Unreadable classification reply: {e}") from e

        category = (reply.category or "").strip().lower()
        if category not in DOCUMENT_CATEGORIES:
            if category:
                self.logging.warning("Unknown category %r, using %s.", category, UNCATEGORIZED, color="yellow")
            category = UNCATEGORIZED

        metadata = DocumentMetadata(
            category=category,
            tags=normalize_tags(reply.tags),
            summary=reply.summary.strip(),
        )
        self.logging.debug(
            "Classified document: category=%s tags=%s confidence=%s",
            metadata.category, metadata.tags, reply.confidence,
        )
        return metadata
