from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts camelCase keys on the wire and snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(CamelModel):
    message: str
    conversation_id: int


class ConversationCreateRequest(CamelModel):
    title: str


class DocumentCreateRequest(CamelModel):
    title: str
    content: str


class TagsUpdateRequest(CamelModel):
    tags: list[str]
