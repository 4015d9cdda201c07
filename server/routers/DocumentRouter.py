from fastapi import APIRouter, Depends, Request, Response

from server.dependencies.auth import CurrentUser, get_current_user, require_admin
from server.models.requests import DocumentCreateRequest, TagsUpdateRequest
from server.models.responses import DocumentResponse

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("", status_code=201)
async def create_document(
    request: Request,
    body: DocumentCreateRequest,
    admin: CurrentUser = Depends(require_admin),
) -> DocumentResponse:
    """Classify, embed and store a new knowledge-base document.

    Args:
        request (Request): FastAPI request (provides app.state.ingest_service).
        body (DocumentCreateRequest): JSON body with title and content.
        admin (CurrentUser): Authenticated admin.

    Returns:
        DocumentResponse: The stored document without its embedding.
    """
    ingest_service = request.app.state.ingest_service
    document = await ingest_service.do_ingest(title=body.title, content=body.content, owner_id=admin.id)
    return DocumentResponse.from_document(document)


@router.get("")
async def list_documents(
    request: Request,
    mine: bool = False,
    user: CurrentUser = Depends(get_current_user),
) -> list[DocumentResponse]:
    """List the knowledge base; ?mine=true limits it to the caller's uploads."""
    ingest_service = request.app.state.ingest_service
    documents = await ingest_service.do_list(owner_id=user.id if mine else None)
    return [DocumentResponse.from_document(d) for d in documents]


@router.get("/{document_id}")
async def get_document(
    request: Request,
    document_id: int,
    _: CurrentUser = Depends(get_current_user),
) -> DocumentResponse:
    ingest_service = request.app.state.ingest_service
    return DocumentResponse.from_document(await ingest_service.do_get(document_id))


@router.delete("/{document_id}", status_code=204)
async def delete_document(
    request: Request,
    document_id: int,
    _: CurrentUser = Depends(require_admin),
) -> Response:
    ingest_service = request.app.state.ingest_service
    await ingest_service.do_delete(document_id)
    return Response(status_code=204)


@router.patch("/{document_id}/tags")
async def update_document_tags(
    request: Request,
    document_id: int,
    body: TagsUpdateRequest,
    _: CurrentUser = Depends(require_admin),
) -> DocumentResponse:
    """Replace the tags of a document; all other fields stay unchanged."""
    ingest_service = request.app.state.ingest_service
    document = await ingest_service.do_update_tags(document_id, body.tags)
    return DocumentResponse.from_document(document)
