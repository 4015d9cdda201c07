import math
from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.text_helper import truncate_text
from shared.models.errors import EmbeddingFailure, ValidationFailure


class EmbedClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # model and embedding config
        self.embed_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_MODEL")
        self.embed_model_max_chars = int(helper_config.get_number_val(f"{self.get_client_type().upper()}_MODEL_MAX_CHARS", default=8000))

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "embed"
        """
        return "embed"

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for embedding requests.

        Returns:
            str: The endpoint path for embedding requests (e.g. "/api/embed")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the backend-specific request body for an embedding request.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            dict: JSON-serialisable request body (e.g. {"model": "...", "input": [...]}).
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """Extract embedding vectors from a raw embedding API response.

        Response format differs by backend:
        - Ollama /api/embed: {"embeddings": [[...], [...]]} (already ordered)
        - OpenAI-compatible: {"data": [{"embedding": [...], "index": 0}]} (sorted by index)

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the input texts.

        Raises:
            ValueError: If the response format is invalid or embeddings are empty.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_embed(self, texts: list[str] | str) -> list[list[float]]:
        """Send an embedding request and return the extracted vectors.

        Every text is truncated to embed_model_max_chars before it is sent,
        so that long documents never exceed the model's input window.

        Args:
            texts (list[str] | str): One or more texts to embed.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the inputs.

        Raises:
            EmbeddingFailure: On transport errors, timeouts, non-200 responses
                or responses without usable vectors.
        """
        texts = [texts] if isinstance(texts, str) else texts
        prepared: list[str] = []
        for text in texts:
            cut = truncate_text(text, self.embed_model_max_chars)
            if len(cut) < len(text):
                self.logging.debug(
                    "Truncated embedding input from %d to %d characters.", len(text), len(cut)
                )
            prepared.append(cut)

        data = await self.do_json_request(
            endpoint=self.get_endpoint_embedding(),
            body=self.get_embed_payload(prepared),
            failure_class=EmbeddingFailure,
            action="Embedding request",
        )
        try:
            vectors = self.extract_embeddings_from_response(data)
        except ValueError as e:
            raise EmbeddingFailure(str(e)) from e

        if len(vectors) != len(prepared):
            raise EmbeddingFailure(
                "Embedding backend returned %d vectors for %d inputs." % (len(vectors), len(prepared))
            )
        return [self._validate_vector(vector) for vector in vectors]

    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Args:
            text (str): Non-empty text.

        Returns:
            list[float]: The embedding vector.

        Raises:
            ValidationFailure: If the text is empty.
            EmbeddingFailure: If the backend call fails.
        """
        if not text or not text.strip():
            raise ValidationFailure("Cannot embed empty text.")
        vectors = await self.do_embed([text])
        return vectors[0]

    def _validate_vector(self, vector: list) -> list[float]:
        """Reject empty, non-numeric or non-finite vectors instead of passing them on."""
        if not vector:
            raise EmbeddingFailure("Embedding backend returned an empty vector.")
        try:
            values = [float(v) for v in vector]
        except (TypeError, ValueError) as e:
            raise EmbeddingFailure("Embedding backend returned a non-numeric vector.") from e
        if not all(math.isfinite(v) for v in values):
            raise EmbeddingFailure("Embedding backend returned a non-finite vector.")
        return values
