from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.models.config import EnvConfig


class LLMClientOpenai(LLMClientInterface):
    """Chat client for the OpenAI chat completions API and compatible servers."""

    def _get_engine_name(self) -> str:
        return "Openai"

    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api.openai.com"),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
        ]

    def _get_endpoint_healthcheck(self) -> str:
        return "/v1/models"

    def _get_endpoint_chat(self) -> str:
        return "/v1/chat/completions"

    def get_chat_payload(self, messages: list[dict], json_mode: bool) -> dict:
        """Build the chat completions request body.

        Args:
            messages (list[dict]): OpenAI-format messages.
            json_mode (bool): Adds response_format json_object when set.

        Returns:
            dict: {"model": "...", "messages": [...], ...}
        """
        payload = {
            "model": self.chat_model,
            "messages": messages,
            "temperature": self.temperature,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    def extract_chat_response(self, response_data: dict) -> str:
        """Extract choices[0].message.content from a chat completions response.

        Raises:
            ValueError: If the response has no choices or the content is missing.
        """
        choices = response_data.get("choices") or []
        if not choices:
            raise ValueError(
                "OpenAI chat response does not contain any choices. "
                "Response keys: %s" % list(response_data.keys())
            )
        content = (choices[0].get("message") or {}).get("content")
        if not isinstance(content, str):
            raise ValueError("OpenAI chat response does not contain message content.")
        return content
