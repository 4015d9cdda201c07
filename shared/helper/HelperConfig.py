"""Central configuration helper for the document chat assistant."""

import logging
import os
from typing import Any, Callable

_TRUE_VALUES = ("true", "1", "yes", "on")


class HelperConfig:
    """Typed access to environment variables plus the application logger.

    Keys are case-insensitive. An unset or empty variable falls back to the
    default; when no default is given the variable is required and a
    ValueError is raised.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _read(self, key: str, default: Any, convert: Callable[[str], Any]) -> Any:
        key = key.upper()
        raw = (os.getenv(key) or "").strip()
        if not raw:
            if default is None:
                raise ValueError(f"Environment variable '{key}' is not set.")
            return default
        try:
            return convert(raw)
        except ValueError as e:
            raise ValueError(f"Environment variable '{key}' has an invalid value '{raw}': {e}") from e

    def get_string_val(self, key: str, default: str | None = None) -> str:
        """Read a string variable, stripped of surrounding whitespace."""
        return self._read(key, default, str)

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read an int ("3") or float ("2.5") variable."""
        return self._read(key, default, lambda raw: float(raw) if "." in raw else int(raw))

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        """Read a boolean variable; true, 1, yes and on are truthy."""
        return self._read(key, default, lambda raw: raw.lower() in _TRUE_VALUES)

    def get_list_val(self, key: str, default: list | None = None, separator: str = ",", element_type: type = str) -> list:
        """Read a list variable written as "[elem1,elem2,...]".

        Args:
            key (str): Environment variable name.
            default (list | None): Fallback if the variable is not set.
            separator (str): Delimiter between elements.
            element_type (type): Type every element is cast to (e.g. int for APP_ADMIN_IDS).

        Returns:
            list: The parsed elements; "[]" gives an empty list.

        Raises:
            ValueError: If the variable is required but unset, not bracketed,
                or an element cannot be cast.
        """
        def parse(raw: str) -> list:
            if not raw.startswith("[") or not raw.endswith("]"):
                raise ValueError(f"expected the format '[elem1{separator}elem2{separator}...]'")
            elements = [v.strip() for v in raw[1:-1].split(separator) if v.strip()]
            return [element_type(elem) for elem in elements]

        return self._read(key, default, parse)

    def get_logger(self) -> logging.Logger:
        """Return the application logger (a ColorLogger in the running app)."""
        return self._logger
