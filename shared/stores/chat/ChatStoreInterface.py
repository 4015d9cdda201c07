from abc import ABC, abstractmethod

from shared.helper.HelperConfig import HelperConfig
from shared.models.chat import Conversation, Message, MessageRole, MessageSource


class ChatStoreInterface(ABC):
    """Persistence of conversations and their append-only messages."""

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    ##########################################
    ############ CONVERSATIONS ###############
    ##########################################

    @abstractmethod
    async def create_conversation(self, owner_id: int, title: str) -> Conversation:
        """Create an empty conversation owned by owner_id."""
        pass

    @abstractmethod
    async def get_conversation(self, conversation_id: int) -> Conversation | None:
        pass

    @abstractmethod
    async def list_conversations(self, owner_id: int) -> list[Conversation]:
        """Return the owner's conversations, most recently updated first."""
        pass

    @abstractmethod
    async def search_conversations(self, owner_id: int, query: str) -> list[Conversation]:
        """Case-insensitive substring search on the titles of the owner's conversations."""
        pass

    @abstractmethod
    async def delete_conversation(self, conversation_id: int) -> None:
        """Delete a conversation together with all of its messages. Idempotent."""
        pass

    ##########################################
    ############### MESSAGES #################
    ##########################################

    @abstractmethod
    async def append_message(
        self,
        conversation_id: int,
        role: MessageRole,
        content: str,
        sources: list[MessageSource] | None = None,
    ) -> Message:
        """Append a message and advance the conversation's updated_at.

        created_at is strictly increasing across all messages of the store.

        Raises:
            NotFound: If the conversation does not exist.
        """
        pass

    @abstractmethod
    async def list_messages(self, conversation_id: int) -> list[Message]:
        """Return the conversation's messages in replay (created_at) order."""
        pass
