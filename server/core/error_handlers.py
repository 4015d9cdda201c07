"""Maps exceptions onto {"error": "<public text>"} JSON responses."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from server.models.responses import ErrorResponse
from shared.models.errors import ChatAssistantError


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ChatAssistantError)
    async def handle_chat_assistant_error(request: Request, exc: ChatAssistantError) -> JSONResponse:
        logging = request.app.state.logging
        if exc.status_code >= 500:
            logging.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
        else:
            logging.info("%s %s rejected (%d): %s", request.method, request.url.path, exc.status_code, exc)
        return _error_response(exc.status_code, exc.public_message)

    @app.exception_handler(HTTPException)
    async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {location} {first.get('msg', '')}".strip() if location else "Invalid request."
        return _error_response(400, message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        request.app.state.logging.error(
            "Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc
        )
        return _error_response(500, "Internal server error.")
