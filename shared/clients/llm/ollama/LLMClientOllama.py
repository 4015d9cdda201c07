from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.models.config import EnvConfig


class LLMClientOllama(LLMClientInterface):
    """Chat completions from an Ollama server (LLM_OLLAMA_BASE_URL)."""

    def _get_engine_name(self) -> str:
        return "Ollama"

    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    def _get_endpoint_healthcheck(self) -> str:
        return ""

    def _get_endpoint_chat(self) -> str:
        return "/api/chat"

    def get_chat_payload(self, messages: list[dict], json_mode: bool) -> dict:
        """Non-streaming /api/chat body; json_mode sets "format": "json"."""
        payload = {
            "model": self.chat_model,
            "messages": messages,
            "stream": False,
            "options": {"temperature": self.temperature},
        }
        if json_mode:
            payload["format"] = "json"
        return payload

    def extract_chat_response(self, response_data: dict) -> str:
        content = (response_data.get("message") or {}).get("content")
        if not isinstance(content, str):
            raise ValueError(
                "Ollama chat response does not contain a message. "
                "Response keys: %s" % list(response_data.keys())
            )
        return content
