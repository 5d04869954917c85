"""Documents API: the signed-in user's stored proposals and pitch decks."""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Path, Query, Request

from pitchgenie.core.auth import get_current_user_id
from pitchgenie.core.errors import NotFoundError
from pitchgenie.core.logging import get_request_id
from pitchgenie.features.documents.service import get_document, list_user_documents

router = APIRouter(prefix="/api/documents", tags=["documents"])


@router.get("")
async def list_documents(
    type: Optional[Literal["proposal", "pitch-deck"]] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    user_id: str = Depends(get_current_user_id),
):
    docs = list_user_documents(user_id, type, limit=limit)
    return {"documents": [doc.summary() for doc in docs], "count": len(docs)}


@router.get("/{document_id}")
async def read_document(
    request: Request,
    document_id: str = Path(..., description="Document ID"),
    user_id: str = Depends(get_current_user_id),
):
    doc = get_document(document_id, user_id)
    if doc is None:
        rid = getattr(request.state, "request_id", None) or get_request_id()
        raise NotFoundError("Document not found", request_id=rid)
    return doc.model_dump(mode="json")
