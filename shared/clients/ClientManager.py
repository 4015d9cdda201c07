import importlib
from abc import ABC, abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig


class ClientManager(ABC):
    """
    Instantiates the client implementation selected by <TYPE>_ENGINE.

    Implementations live in shared/clients/<type>/<engine>/<Prefix><Engine>.py,
    e.g. shared/clients/embed/ollama/EmbedClientOllama.py.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    @abstractmethod
    def _get_client_type(self) -> str:
        """
        Returns the client type, used as package name and env prefix. E.g. "embed"
        """
        pass

    @abstractmethod
    def _get_class_prefix(self) -> str:
        """
        Returns the class name prefix of the implementations. E.g. "EmbedClient"
        """
        pass

    def _get_engine_from_env(self) -> str:
        """
        Reads the engine from <TYPE>_ENGINE.

        Returns:
            str: The engine name, capitalised (e.g. "Openai").

        Raises:
            ValueError: If no engine is configured.
        """
        env_key = f"{self._get_client_type().upper()}_ENGINE"
        engine = self.helper_config.get_string_val(env_key)
        if not engine:
            raise ValueError(f"No engine specified in {env_key}.")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> ClientInterface:
        """
        Imports and instantiates the configured implementation.

        Raises:
            ValueError: If the configured engine has no implementation.
        """
        engine = self._get_engine_from_env()
        class_name = f"{self._get_class_prefix()}{engine}"
        module_path = f"shared.clients.{self._get_client_type()}.{engine.lower()}.{class_name}"
        try:
            client_class = getattr(importlib.import_module(module_path), class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(
                f"Unsupported {self._get_client_type().upper()} engine specified: '{engine}'. Error: {e}"
            )

        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated %s client for engine: %s", self._get_client_type().upper(), engine)
        return client

    def get_client(self) -> ClientInterface:
        return self.client
