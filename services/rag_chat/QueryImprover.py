"""Query improver: rewrites a raw question into a domain-enriched search query."""

from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.text_helper import extract_json_object
from shared.models.errors import ChatAssistantError
from services.rag_chat.prompts import QUERY_IMPROVER_SYSTEM_PROMPT


class QueryImprover:
    """Expands a user question with domain vocabulary.

    Never fails a chat turn: when the model is unreachable or its reply is
    unusable, the raw query is returned unchanged.
    """

    def __init__(
        self,
        helper_config: HelperConfig,
        llm_client: LLMClientInterface,
        domain: str = "cybersecurity",
    ) -> None:
        self.logging = helper_config.get_logger()
        self._llm = llm_client
        self._domain = domain

    async def improve(self, raw_query: str) -> str:
        """Return an improved query, or raw_query if improvement fails.

        Args:
            raw_query (str): The user's question as typed.

        Returns:
            str: The improved query string (never empty for non-empty input).
        """
        messages = [
            {"role": "system", "content": QUERY_IMPROVER_SYSTEM_PROMPT.format(domain=self._domain)},
            {"role": "user", "content": raw_query},
        ]
        try:
            reply = await self._llm.do_chat(messages, json_mode=True)
        except ChatAssistantError as e:
            self.logging.warning("Query improvement failed, using raw query: %s", e, color="yellow")
            return raw_query

        try:
            improved = extract_json_object(reply).get("query")
        except ValueError:
            improved = None
        if not isinstance(improved, str) or not improved.strip():
            self.logging.warning("Query improvement returned no usable query, using raw query.", color="yellow")
            return raw_query

        improved = improved.strip()
        self.logging.debug("Improved query %r -> %r", raw_query[:80], improved[:80])
        return improved
