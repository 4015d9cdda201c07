from fastapi import APIRouter, Depends, Request

from server.dependencies.auth import CurrentUser, get_current_user
from server.models.requests import ChatRequest
from server.models.responses import ChatResponse, MessageResponse, SourceItem

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("")
async def chat(
    request: Request,
    body: ChatRequest,
    user: CurrentUser = Depends(get_current_user),
) -> ChatResponse:
    """Answer a message within one of the caller's conversations.

    Args:
        request (Request): FastAPI request (provides app.state.chat_service).
        body (ChatRequest): JSON body with message and conversationId.
        user (CurrentUser): Authenticated caller.

    Returns:
        ChatResponse: The persisted assistant message and its sources.
    """
    chat_service = request.app.state.chat_service
    result = await chat_service.do_chat_turn(
        owner_id=user.id,
        conversation_id=body.conversation_id,
        message=body.message,
    )
    return ChatResponse(
        message=MessageResponse.from_message(result.message),
        sources=[SourceItem.from_source(source) for source in result.sources],
    )
