from typing import Literal

from pydantic import BaseModel


class EnvConfig(BaseModel):
    """One <TYPE>_<ENGINE>_<KEY> variable a client reads at construction.

    Attributes:
        env_key (str): Key without the client prefix, e.g. "BASE_URL".
        val_type (str): How the value is parsed.
        default: Fallback if unset; None makes the variable required.
    """

    env_key: str
    val_type: Literal["string", "number", "bool", "list"] = "string"
    default: str | int | float | bool | list | None = None
