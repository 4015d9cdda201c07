"""Chat service: orchestrates one retrieval-augmented chat turn.

Turn phases: VALIDATING → RETRIEVING → GENERATING → PERSISTING → RESPONDED,
with ERRORED reachable from every phase.

The user message is written before anything external is called, and the
outcome (assistant or error message) is written afterwards. A provider
failure therefore never loses the user's input: the conversation ends up
with the user message followed by an error message.
"""

import asyncio
import uuid
import weakref
from dataclasses import dataclass, field

from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import current_turn_id
from shared.models.chat import Conversation, Message, MessageRole, MessageSource
from shared.models.document import Document
from shared.models.errors import ChatAssistantError, GenerationFailure, NotFound, ValidationFailure
from shared.stores.chat.ChatStoreInterface import ChatStoreInterface
from services.rag_chat.AnswerGenerator import AnswerGenerator
from services.rag_chat.ContextAssembler import ContextAssembler
from services.rag_chat.Retriever import Retriever
from services.rag_chat.TurnObserver import LoggingTurnObserver, TurnObserverInterface, TurnPhase


@dataclass
class ChatTurnResult:
    """The persisted assistant message and the citations it was grounded on."""

    message: Message
    sources: list[MessageSource] = field(default_factory=list)


class ChatService:
    """Handles chat turns and the conversation operations around them."""

    def __init__(
        self,
        helper_config: HelperConfig,
        chat_store: ChatStoreInterface,
        retriever: Retriever,
        context_assembler: ContextAssembler,
        answer_generator: AnswerGenerator,
        observer: TurnObserverInterface | None = None,
        retrieval_k: int = 3,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._chat_store = chat_store
        self._retriever = retriever
        self._assembler = context_assembler
        self._generator = answer_generator
        self._observer = observer or LoggingTurnObserver(helper_config)
        self._retrieval_k = int(retrieval_k)
        # one lock per conversation that currently has a turn in flight
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_chat_turn(self, owner_id: int, conversation_id: int, message: str) -> ChatTurnResult:
        """Answer one user message within a conversation.

        Turns on the same conversation are serialised so that their messages
        never interleave; turns on different conversations run independently.

        Args:
            owner_id (int): Authenticated caller.
            conversation_id (int): Existing conversation owned by the caller.
            message (str): The user's question.

        Returns:
            ChatTurnResult: The stored assistant message and its sources.

        Raises:
            ValidationFailure: Empty message or unknown / foreign conversation.
                Nothing is persisted.
            RetrievalFailure | GenerationFailure | MalformedResponseFailure:
                Provider failures. The user message and an error message are
                persisted before the error is raised.
        """
        turn_id = uuid.uuid4().hex[:12]
        token = current_turn_id.set(turn_id)
        try:
            return await self._run_turn(turn_id, owner_id, conversation_id, message)
        finally:
            current_turn_id.reset(token)

    async def _run_turn(self, turn_id: str, owner_id: int, conversation_id: int, message: str) -> ChatTurnResult:
        self._observer.on_phase(turn_id, TurnPhase.VALIDATING, conversation_id=conversation_id)
        try:
            await self._validate_turn(owner_id, conversation_id, message)
        except ValidationFailure as e:
            self._observer.on_phase(turn_id, TurnPhase.ERRORED, error=type(e).__name__)
            raise

        async with self._get_lock(conversation_id):
            await self._chat_store.append_message(conversation_id, MessageRole.USER, message)

            try:
                self._observer.on_phase(turn_id, TurnPhase.RETRIEVING, k=self._retrieval_k)
                retrieval = await self._retriever.retrieve(message, self._retrieval_k)

                self._observer.on_phase(turn_id, TurnPhase.GENERATING, documents=len(retrieval.documents))
                context = self._assembler.assemble(retrieval.documents)
                generated = await self._generator.generate(message, retrieval.improved_query, context)
            except Exception as e:
                failure = e if isinstance(e, ChatAssistantError) else GenerationFailure(f"Unexpected error: {e}")
                await self._record_failure(turn_id, conversation_id, failure, e)
                if failure is e:
                    raise
                raise failure from e

            self._observer.on_phase(turn_id, TurnPhase.PERSISTING)
            sources = self._build_sources(retrieval.documents)
            assistant_message = await self._chat_store.append_message(
                conversation_id, MessageRole.ASSISTANT, generated.answer, sources=sources
            )

        self._observer.on_phase(turn_id, TurnPhase.RESPONDED, sources=len(sources))
        return ChatTurnResult(message=assistant_message, sources=sources)

    ##########################################
    ############ CONVERSATIONS ###############
    ##########################################

    async def do_create_conversation(self, owner_id: int, title: str) -> Conversation:
        conversation = await self._chat_store.create_conversation(owner_id, title)
        self.logging.info("Created conversation id=%d owner_id=%d", conversation.id, owner_id)
        return conversation

    async def do_list_conversations(self, owner_id: int, query: str | None = None) -> list[Conversation]:
        if query:
            return await self._chat_store.search_conversations(owner_id, query)
        return await self._chat_store.list_conversations(owner_id)

    async def do_list_messages(self, owner_id: int, conversation_id: int) -> list[Message]:
        await self.get_owned_conversation(owner_id, conversation_id)
        return await self._chat_store.list_messages(conversation_id)

    async def do_delete_conversation(self, owner_id: int, conversation_id: int) -> None:
        await self.get_owned_conversation(owner_id, conversation_id)
        await self._chat_store.delete_conversation(conversation_id)

    async def get_owned_conversation(self, owner_id: int, conversation_id: int) -> Conversation:
        """Return the conversation if it exists and belongs to owner_id.

        Raises:
            NotFound: Otherwise. Foreign conversations are reported as missing.
        """
        conversation = await self._chat_store.get_conversation(conversation_id)
        if conversation is None or conversation.owner_id != owner_id:
            raise NotFound(f"Conversation {conversation_id} not found for owner {owner_id}.", public_message="Conversation not found.")
        return conversation

    ##########################################
    ############### HELPERS ##################
    ##########################################

    async def _validate_turn(self, owner_id: int, conversation_id: int, message: str) -> None:
        if not isinstance(message, str) or not message.strip():
            raise ValidationFailure("Message must be a non-empty string.")
        try:
            await self.get_owned_conversation(owner_id, conversation_id)
        except NotFound as e:
            raise ValidationFailure("Invalid conversation id.") from e

    async def _record_failure(
        self,
        turn_id: str,
        conversation_id: int,
        failure: ChatAssistantError,
        cause: BaseException,
    ) -> None:
        """Log a failed turn and append the public error text to the conversation."""
        self._observer.on_phase(turn_id, TurnPhase.ERRORED, error=type(failure).__name__)
        self.logging.error(
            "Chat turn %s failed in conversation %d: %s", turn_id, conversation_id, failure,
            exc_info=cause,
        )
        await self._chat_store.append_message(conversation_id, MessageRole.ERROR, failure.public_message)

    def _build_sources(self, documents: list[Document]) -> list[MessageSource]:
        return [
            MessageSource(
                document_id=doc.id,
                title=doc.title,
                category=doc.metadata.category,
                tags=list(doc.metadata.tags),
            )
            for doc in documents
        ]

    def _get_lock(self, conversation_id: int) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        return lock
