"""Error taxonomy of the chat assistant.

Every error carries the HTTP status it maps to and a public message that is
safe to show to clients. The original cause is kept as ``__cause__`` (raise
... from ...) and only ever reaches the logs.
"""


class ChatAssistantError(Exception):
    """Base class for all expected failures."""

    status_code: int = 500
    public_message: str = "Internal server error."

    def __init__(self, message: str | None = None, public_message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        if public_message is not None:
            self.public_message = public_message


class ValidationFailure(ChatAssistantError):
    status_code = 400
    public_message = "Invalid request."

    def __init__(self, message: str | None = None, public_message: str | None = None) -> None:
        # validation messages describe the caller's own input, so they are public by default
        super().__init__(message, public_message or message)


class AuthFailure(ChatAssistantError):
    status_code = 401
    public_message = "Authentication required."


class ForbiddenFailure(ChatAssistantError):
    status_code = 403
    public_message = "Admin access required."


class NotFound(ChatAssistantError):
    status_code = 404
    public_message = "Resource not found."


class EmbeddingFailure(ChatAssistantError):
    public_message = "Failed to compute an embedding."


class GenerationFailure(ChatAssistantError):
    public_message = "Failed to generate a response."


class MalformedResponseFailure(GenerationFailure):
    public_message = "The language model returned an unreadable response."


class RetrievalFailure(ChatAssistantError):
    public_message = "Failed to retrieve relevant documents."
