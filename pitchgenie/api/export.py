"""Export API: proposals as PDF or DOCX, pitch decks as landscape PDF."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request
from fastapi.responses import Response

from pitchgenie.core.auth import get_current_user_id
from pitchgenie.core.errors import AppError, NotFoundError, UpstreamError, ValidationError
from pitchgenie.core.logging import get_request_id, log_event
from pitchgenie.features.documents.service import get_document
from pitchgenie.features.export import renderer
from pitchgenie.features.export.formatting import (
    DOCX_CONTENT_TYPE,
    PDF_CONTENT_TYPE,
    build_pitch_deck_html,
    build_proposal_docx,
    build_proposal_html,
    sanitize_filename,
)

logger = logging.getLogger("pitchgenie")

router = APIRouter(prefix="/api/export", tags=["export"])


def _rid(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or get_request_id()


def _attachment(body: bytes, content_type: str, filename: str) -> Response:
    return Response(
        content=body,
        media_type=content_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/proposal/{document_id}")
async def export_proposal(
    request: Request,
    document_id: str = Path(..., description="Proposal ID"),
    format: str = Query("pdf"),
    user_id: str = Depends(get_current_user_id),
):
    rid = _rid(request)
    try:
        proposal = get_document(document_id, user_id, "proposal")
        if proposal is None:
            raise NotFoundError("Proposal not found", request_id=rid)

        basename = sanitize_filename(proposal.project_title)
        if format == "pdf":
            html = build_proposal_html(proposal.content, proposal.project_title)
            body = await renderer.render_pdf(html, landscape=False, margin="20mm")
            response = _attachment(body, PDF_CONTENT_TYPE, f"{basename}.pdf")
        elif format == "docx":
            body = build_proposal_docx(proposal.content)
            response = _attachment(body, DOCX_CONTENT_TYPE, f"{basename}.docx")
        else:
            raise ValidationError("Invalid format", request_id=rid)
    except AppError:
        raise
    except Exception as exc:
        logger.error("export.proposal_failed", exc_info=True, extra={"request_id": rid, "document_id": document_id})
        raise UpstreamError("Failed to export proposal", request_id=rid) from exc

    log_event(
        "info",
        "export.proposal",
        request_id=rid,
        user_id=user_id,
        document_id=document_id,
        event_type="export",
        extra={"format": format, "bytes": len(body)},
    )
    return response


@router.get("/pitch-deck/{document_id}")
async def export_pitch_deck(
    request: Request,
    document_id: str = Path(..., description="Pitch deck ID"),
    user_id: str = Depends(get_current_user_id),
):
    rid = _rid(request)
    try:
        deck = get_document(document_id, user_id, "pitch-deck")
        if deck is None:
            raise NotFoundError("Pitch deck not found", request_id=rid)

        # Stored decks keep the startup name in client_name and the tagline in project_title
        html = build_pitch_deck_html(deck.content, deck.client_name, deck.project_title)
        body = await renderer.render_pdf(html, landscape=True, margin="10mm")
    except AppError:
        raise
    except Exception as exc:
        logger.error("export.pitch_deck_failed", exc_info=True, extra={"request_id": rid, "document_id": document_id})
        raise UpstreamError("Failed to export pitch deck", request_id=rid) from exc

    log_event(
        "info",
        "export.pitch_deck",
        request_id=rid,
        user_id=user_id,
        document_id=document_id,
        event_type="export",
        extra={"format": "pdf", "bytes": len(body)},
    )
    return _attachment(body, PDF_CONTENT_TYPE, f"{sanitize_filename(deck.client_name, 'pitch_deck')}_pitch_deck.pdf")
