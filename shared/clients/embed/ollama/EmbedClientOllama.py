from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.models.config import EnvConfig


class EmbedClientOllama(EmbedClientInterface):
    """Embeddings from a local or remote Ollama server (EMBED_OLLAMA_BASE_URL)."""

    def _get_engine_name(self) -> str:
        return "Ollama"

    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            # only needed behind an authenticating reverse proxy
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    def _get_endpoint_healthcheck(self) -> str:
        # Ollama answers "Ollama is running" on its root path
        return ""

    def get_endpoint_embedding(self) -> str:
        return "/api/embed"

    def get_embed_payload(self, texts: list[str]) -> dict:
        return {"model": self.embed_model, "input": texts}

    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Read {"embeddings": [[...], ...]}, which /api/embed returns in input order.

        Raises:
            ValueError: If the list is missing or empty.
        """
        embeddings = response_data.get("embeddings")
        if not isinstance(embeddings, list) or not embeddings:
            raise ValueError(
                "Ollama response does not contain embeddings. "
                f"Response keys: {list(response_data.keys())}"
            )
        return embeddings
