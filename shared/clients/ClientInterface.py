from abc import ABC, abstractmethod
from typing import Any

import httpx
from httpx._types import QueryParamTypes

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.errors import ChatAssistantError


class ClientInterface(ABC):
    """Base class of the HTTP clients for the model backends.

    Configuration is read from <TYPE>_<ENGINE>_<KEY> variables (e.g.
    EMBED_OLLAMA_BASE_URL) as declared by _get_required_config(), and the
    request timeout from <TYPE>_TIMEOUT.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)

        self._client: httpx.AsyncClient | None = None
        self._config: dict[str, Any] = self._load_configuration()

    ##########################################
    ################ CONFIG ##################
    ##########################################

    def _load_configuration(self) -> dict[str, Any]:
        """Resolve every declared config key once; a missing required key raises ValueError."""
        return {
            config.env_key.upper(): self.get_config_val(
                raw_key=config.env_key, default=config.default, val_type=config.val_type
            )
            for config in self._get_required_config()
        }

    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """
        Returns the engine's configuration keys; default=None marks a key as required.
        """
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        """
        Returns:
            str: The full variable name. E.g. "LLM_OPENAI_API_KEY"
        """
        return f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Reads one <TYPE>_<ENGINE>_<KEY> variable.

        Args:
            raw_key (str): Key without prefix, e.g. "BASE_URL".
            default (Any): Fallback; None makes the key required.
            val_type (str): "string", "number", "bool" or "list".
        """
        readers = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
            "list": self._helper_config.get_list_val,
        }
        if val_type not in readers:
            raise ValueError(f"Unsupported config value type '{val_type}' for '{self._get_config_key_name(raw_key)}'.")
        return readers[val_type](self._get_config_key_name(raw_key), default=default)

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_client_type(self) -> str:
        """
        Returns the type of the client in lowercase. E.g. "embed"
        """
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        pass

    def get_engine_name(self) -> str:
        """
        Returns the engine name in lowercase. E.g. "ollama"
        """
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    def _get_base_url(self) -> str:
        return self._config["BASE_URL"]

    def _get_auth_header(self) -> dict:
        """Bearer header if the engine has an API_KEY configured, else {}."""
        api_key = self._config.get("API_KEY")
        return {"Authorization": f"Bearer {api_key}"} if api_key else {}

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        """
        Returns the path probed on startup, e.g. "/v1/models". "" probes the base URL.
        """
        pass

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Open the HTTP client.

        Args:
            transport: Optional custom transport (httpx.MockTransport in tests).
        """
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> httpx.Response:
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck())

    async def do_request(
        self,
        method: str = "GET",
        json: dict | None = None,
        params: QueryParamTypes | None = None,
        endpoint: str = "",
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send an HTTP request to the backend.

        Raises:
            RuntimeError: If boot() has not been called.
            httpx.HTTPStatusError: If raise_on_error is set and the status is not 2xx.
            httpx.HTTPError: On transport errors and timeouts.
        """
        if self._client is None:
            raise RuntimeError("HTTP client not initialised. Call boot() before making requests.")

        endpoint = "/" + endpoint.strip().lstrip("/") if endpoint.strip() else ""
        url = f"{self._get_base_url().rstrip('/')}{endpoint}"
        headers = {**self._get_auth_header(), **(additional_headers or {})}

        response = await self._client.request(
            method, url=url, headers=headers, params=params, json=json, timeout=self.timeout
        )
        if raise_on_error and not response.is_success:
            response.raise_for_status()
        return response

    async def do_json_request(
        self,
        endpoint: str,
        body: dict,
        failure_class: type[ChatAssistantError],
        action: str,
    ) -> dict:
        """POST a JSON body and return the decoded JSON answer.

        Every way the backend can fail is raised as failure_class with the
        original exception chained.

        Args:
            endpoint (str): Path below the base URL.
            body (dict): JSON request body.
            failure_class (type[ChatAssistantError]): E.g. EmbeddingFailure.
            action (str): Used in messages, e.g. "Embedding request".
        """
        engine = self.get_engine_name()
        try:
            response = await self.do_request(method="POST", endpoint=endpoint, json=body)
        except httpx.TimeoutException as e:
            raise failure_class(f"{action} to {engine} timed out after {self.timeout}s.") from e
        except httpx.HTTPError as e:
            raise failure_class(f"{action} to {engine} failed: {e}") from e

        if not response.is_success:
            self.logging.error(
                "%s to %s failed with status %d: %s", action, engine, response.status_code, response.text[:200]
            )
            raise failure_class(f"{action} to {engine} failed with status {response.status_code}.")

        try:
            data = response.json()
        except ValueError as e:
            raise failure_class(f"{action} to {engine} returned invalid JSON.") from e
        if not isinstance(data, dict):
            raise failure_class(f"{action} to {engine} returned {type(data).__name__}, expected an object.")
        return data
