from shared.clients.ClientManager import ClientManager
from shared.clients.llm.LLMClientInterface import LLMClientInterface


class LLMClientManager(ClientManager):
    """Selects the chat-model backend from LLM_ENGINE ("openai" or "ollama")."""

    def _get_client_type(self) -> str:
        return "llm"

    def _get_class_prefix(self) -> str:
        return "LLMClient"

    def get_client(self) -> LLMClientInterface:
        return self.client
