from fastapi import APIRouter, Depends, Request, Response

from server.dependencies.auth import CurrentUser, get_current_user
from server.models.requests import ConversationCreateRequest
from server.models.responses import ConversationResponse, MessageResponse

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.post("", status_code=201)
async def create_conversation(
    request: Request,
    body: ConversationCreateRequest,
    user: CurrentUser = Depends(get_current_user),
) -> ConversationResponse:
    chat_service = request.app.state.chat_service
    conversation = await chat_service.do_create_conversation(owner_id=user.id, title=body.title)
    return ConversationResponse.from_conversation(conversation)


@router.get("")
async def list_conversations(
    request: Request,
    q: str | None = None,
    user: CurrentUser = Depends(get_current_user),
) -> list[ConversationResponse]:
    """List the caller's conversations, most recently updated first.

    Args:
        q (str | None): Optional case-insensitive filter on the title.
    """
    chat_service = request.app.state.chat_service
    conversations = await chat_service.do_list_conversations(owner_id=user.id, query=q)
    return [ConversationResponse.from_conversation(c) for c in conversations]


@router.get("/{conversation_id}/messages")
async def list_messages(
    request: Request,
    conversation_id: int,
    user: CurrentUser = Depends(get_current_user),
) -> list[MessageResponse]:
    chat_service = request.app.state.chat_service
    messages = await chat_service.do_list_messages(owner_id=user.id, conversation_id=conversation_id)
    return [MessageResponse.from_message(m) for m in messages]


@router.delete("/{conversation_id}", status_code=204)
async def delete_conversation(
    request: Request,
    conversation_id: int,
    user: CurrentUser = Depends(get_current_user),
) -> Response:
    """Delete a conversation and all of its messages."""
    chat_service = request.app.state.chat_service
    await chat_service.do_delete_conversation(owner_id=user.id, conversation_id=conversation_id)
    return Response(status_code=204)
