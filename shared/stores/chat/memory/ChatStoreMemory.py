from datetime import datetime, timedelta, timezone

from shared.helper.HelperConfig import HelperConfig
from shared.models.chat import Conversation, Message, MessageRole, MessageSource
from shared.models.errors import NotFound, ValidationFailure
from shared.stores.chat.ChatStoreInterface import ChatStoreInterface


class ChatStoreMemory(ChatStoreInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._conversations: dict[int, Conversation] = {}
        self._messages: dict[int, list[Message]] = {}
        self._next_conversation_id = 1
        self._next_message_id = 1
        self._last_timestamp: datetime | None = None

    def _get_engine_name(self) -> str:
        return "Memory"

    ##########################################
    ############ CONVERSATIONS ###############
    ##########################################

    async def create_conversation(self, owner_id: int, title: str) -> Conversation:
        title = (title or "").strip()
        if not title:
            raise ValidationFailure("Conversation title must not be empty.")
        now = self._now()
        conversation = Conversation(
            id=self._next_conversation_id,
            title=title,
            owner_id=owner_id,
            created_at=now,
            updated_at=now,
        )
        self._conversations[conversation.id] = conversation
        self._messages[conversation.id] = []
        self._next_conversation_id += 1
        return conversation.model_copy()

    async def get_conversation(self, conversation_id: int) -> Conversation | None:
        conversation = self._conversations.get(conversation_id)
        return conversation.model_copy() if conversation is not None else None

    async def list_conversations(self, owner_id: int) -> list[Conversation]:
        owned = [c for c in self._conversations.values() if c.owner_id == owner_id]
        return [c.model_copy() for c in sorted(owned, key=lambda c: c.updated_at, reverse=True)]

    async def search_conversations(self, owner_id: int, query: str) -> list[Conversation]:
        needle = (query or "").casefold()
        conversations = await self.list_conversations(owner_id)
        return [c for c in conversations if needle in c.title.casefold()]

    async def delete_conversation(self, conversation_id: int) -> None:
        removed = self._conversations.pop(conversation_id, None)
        messages = self._messages.pop(conversation_id, [])
        if removed is not None:
            self.logging.info(
                "Deleted conversation id=%d with %d message(s).", conversation_id, len(messages)
            )

    ##########################################
    ############### MESSAGES #################
    ##########################################

    async def append_message(
        self,
        conversation_id: int,
        role: MessageRole,
        content: str,
        sources: list[MessageSource] | None = None,
    ) -> Message:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise NotFound(f"Conversation {conversation_id} not found.", public_message="Conversation not found.")
        now = self._now()
        message = Message(
            id=self._next_message_id,
            conversation_id=conversation_id,
            role=role,
            content=content,
            sources=[s.model_copy() for s in sources] if sources is not None else None,
            created_at=now,
        )
        self._next_message_id += 1
        self._messages[conversation_id].append(message)
        self._conversations[conversation_id] = conversation.model_copy(update={"updated_at": now})
        return message.model_copy(deep=True)

    async def list_messages(self, conversation_id: int) -> list[Message]:
        messages = self._messages.get(conversation_id, [])
        return [m.model_copy(deep=True) for m in sorted(messages, key=lambda m: m.created_at)]

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _now(self) -> datetime:
        """UTC now, nudged forward so that no two writes share a timestamp."""
        now = datetime.now(timezone.utc)
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now
