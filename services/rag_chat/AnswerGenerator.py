"""Answer generator: grounded chat completion with a validated structured reply.

The model must answer with {"answer": "..."}. Its reply is untrusted input
and is parsed into a tagged variant, AnswerOk or AnswerMalformed, before
anything downstream looks at it.
"""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.text_helper import extract_json_object
from shared.models.errors import MalformedResponseFailure
from services.rag_chat.prompts import (
    ANSWER_SYSTEM_PROMPT,
    ANSWER_USER_PROMPT,
    EMPTY_CONTEXT_PLACEHOLDER,
    MALFORMED_RETRY_HINT,
)


class StructuredAnswer(BaseModel):
    """Schema of the model's reply."""

    answer: str = Field(min_length=1)


@dataclass
class AnswerOk:
    answer: str
    kind: Literal["ok"] = "ok"


@dataclass
class AnswerMalformed:
    reason: str
    raw: str
    kind: Literal["malformed"] = "malformed"


@dataclass
class GeneratedAnswer:
    answer: str


def parse_structured_answer(raw: str | None) -> AnswerOk | AnswerMalformed:
    """Validate a raw model reply against the {"answer": str} schema.

    Args:
        raw (str | None): The reply text.

    Returns:
        AnswerOk | AnswerMalformed: AnswerOk with the stripped answer, or
            AnswerMalformed describing why the reply was rejected.
    """
    if raw is None or not raw.strip():
        return AnswerMalformed(reason="empty reply", raw=raw or "")
    try:
        payload = extract_json_object(raw)
    except ValueError as e:
        return AnswerMalformed(reason=str(e), raw=raw)
    try:
        parsed = StructuredAnswer.model_validate(payload)
    except ValidationError as e:
        return AnswerMalformed(reason=f"schema mismatch: {e.errors()[0]['msg']}", raw=raw)
    answer = parsed.answer.strip()
    if not answer:
        return AnswerMalformed(reason="blank answer", raw=raw)
    return AnswerOk(answer=answer)


class AnswerGenerator:
    """Calls the language model with the assembled context and both query variants."""

    def __init__(
        self,
        helper_config: HelperConfig,
        llm_client: LLMClientInterface,
        domain: str = "cybersecurity",
        malformed_retries: int = 1,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._llm = llm_client
        self._domain = domain
        self._malformed_retries = max(0, int(malformed_retries))

    def build_messages(self, raw_query: str, improved_query: str, context: str) -> list[dict]:
        """Build the chat messages. Pure: same inputs, same messages."""
        system = ANSWER_SYSTEM_PROMPT.format(
            domain=self._domain,
            context=context if context else EMPTY_CONTEXT_PLACEHOLDER,
        )
        user = ANSWER_USER_PROMPT.format(raw_query=raw_query, improved_query=improved_query)
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]

    async def generate(self, raw_query: str, improved_query: str, context: str) -> GeneratedAnswer:
        """Generate a grounded answer.

        Args:
            raw_query (str): The user's question.
            improved_query (str): Output of the QueryImprover.
            context (str): Output of the ContextAssembler, possibly "".

        Returns:
            GeneratedAnswer: The non-empty answer text.

        Raises:
            GenerationFailure: If the provider call fails.
            MalformedResponseFailure: If no attempt yields a valid structure.
        """
        messages = self.build_messages(raw_query, improved_query, context)
        attempts = 1 + self._malformed_retries

        for attempt in range(1, attempts + 1):
            raw = await self._llm.do_chat(messages, json_mode=True)
            result = parse_structured_answer(raw)
            if isinstance(result, AnswerOk):
                return GeneratedAnswer(answer=result.answer)

            self.logging.warning(
                "Malformed answer (attempt %d/%d): %s", attempt, attempts, result.reason, color="yellow"
            )
            if attempt < attempts:
                messages = [
                    *messages,
                    {"role": "assistant", "content": result.raw},
                    {"role": "user", "content": MALFORMED_RETRY_HINT},
                ]

        raise MalformedResponseFailure(f"Model reply could not be parsed after {attempts} attempt(s): {result.reason}")
