"""Generation API: proposals and pitch decks.

Both endpoints follow the same sequence:
auth -> usage gate -> model call -> store document -> count usage.
A request refused by the gate never reaches the model.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import Field

from pitchgenie.core.auth import get_current_user_id
from pitchgenie.core.errors import AppError, QuotaExceededError, UpstreamError
from pitchgenie.core.logging import get_request_id, log_event
from pitchgenie.features.ai.fields import DEFAULT_FIELD
from pitchgenie.features.ai.models import ModelPreference
from pitchgenie.features.ai.service import (
    CamelRequest,
    FieldSpecificAIService,
    GenerationResult,
    PitchDeckGenerationRequest,
    ProposalGenerationRequest,
    get_ai_service,
)
from pitchgenie.features.documents.service import create_document
from pitchgenie.features.subscription.service import can_user_generate, increment_usage

logger = logging.getLogger("pitchgenie")

router = APIRouter(prefix="/api/generate", tags=["generate"])

PROPOSAL_LIMIT_MESSAGE = "Usage limit reached. Please upgrade your plan to generate more proposals."
PITCH_DECK_LIMIT_MESSAGE = "Usage limit reached. Please upgrade your plan to generate more pitch decks."


class PitchDeckRequestBody(CamelRequest):
    """Pitch-deck form payload; extra form answers fold into field_specific_data."""
    field: str = DEFAULT_FIELD
    startup_name: str = Field(min_length=1)
    tagline: Optional[str] = None
    problem: str = ""
    solution: str = ""
    market: str = ""
    business_model: Optional[str] = None
    traction: Optional[str] = None
    team: Optional[str] = None
    competition: Optional[str] = None
    funding_ask: Optional[str] = None
    use_of_funds: Optional[str] = None
    industry: Optional[str] = None
    field_specific_data: Optional[Dict[str, Any]] = None
    model_preference: Optional[ModelPreference] = None
    visual_mode: bool = False
    export_format: Optional[str] = None

    def to_generation_request(self) -> PitchDeckGenerationRequest:
        extra = dict(self.field_specific_data or {})
        for key, value in (
            ("traction", self.traction),
            ("competition", self.competition),
            ("useOfFunds", self.use_of_funds),
            ("industry", self.industry),
        ):
            if value:
                extra[key] = value
        return PitchDeckGenerationRequest(
            field=self.field,
            startup_name=self.startup_name,
            tagline=self.tagline,
            problem=self.problem,
            solution=self.solution,
            market=self.market,
            business_model=self.business_model,
            team=self.team,
            funding=self.funding_ask,
            field_specific_data=extra,
            model_preference="visual" if self.visual_mode else self.model_preference,
            visual_mode=self.visual_mode,
            export_format=self.export_format if self.export_format in ("pdf", "html") else None,
        )


def _rid(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None) or get_request_id()


def _result_metadata(field: str, result: GenerationResult) -> Dict[str, Any]:
    return {
        "field": field,
        "model": result.model,
        "tokens_used": result.tokens_used,
        "generation_time": result.generation_time,
    }


@router.post("/proposal")
async def generate_proposal(
    body: ProposalGenerationRequest,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    ai: FieldSpecificAIService = Depends(get_ai_service),
):
    rid = _rid(request)
    try:
        if not can_user_generate(user_id, "proposals"):
            log_event("info", "generate.quota_exceeded", request_id=rid, user_id=user_id, event_type="proposal")
            raise QuotaExceededError(PROPOSAL_LIMIT_MESSAGE, request_id=rid)

        result = await ai.generate_proposal(body)
        if not result.success:
            raise RuntimeError(result.error or "generation failed")

        metadata = _result_metadata(body.field, result)
        document = create_document(
            user_id=user_id,
            doc_type="proposal",
            client_name=body.client_name,
            client_company=body.client_company,
            project_title=body.project_title,
            content=result.content,
            metadata={**metadata, "field_specific_data": body.field_specific_data},
        )
        increment_usage(user_id, "proposals")
    except AppError:
        raise
    except Exception as exc:
        logger.error("generate.proposal_failed", exc_info=True, extra={"request_id": rid, "user_id": user_id})
        raise UpstreamError("Failed to generate proposal", request_id=rid) from exc

    log_event(
        "info",
        "generate.proposal",
        request_id=rid,
        user_id=user_id,
        document_id=document.id,
        event_type="proposal",
        extra={"model": result.model, "tokens_used": result.tokens_used},
    )
    return {"id": document.id, "message": "Proposal generated successfully", "metadata": metadata}


@router.post("/pitch-deck")
async def generate_pitch_deck(
    body: PitchDeckRequestBody,
    request: Request,
    user_id: str = Depends(get_current_user_id),
    ai: FieldSpecificAIService = Depends(get_ai_service),
):
    rid = _rid(request)
    try:
        if not can_user_generate(user_id, "pitch_decks"):
            log_event("info", "generate.quota_exceeded", request_id=rid, user_id=user_id, event_type="pitch-deck")
            raise QuotaExceededError(PITCH_DECK_LIMIT_MESSAGE, request_id=rid)

        generation_request = body.to_generation_request()
        result = await ai.generate_pitch_deck(generation_request)
        if not result.success:
            raise RuntimeError(result.error or "generation failed")

        metadata = _result_metadata(body.field, result)
        document = create_document(
            user_id=user_id,
            doc_type="pitch-deck",
            client_name=body.startup_name,
            project_title=body.tagline or body.startup_name,
            content=result.content,
            metadata={
                **metadata,
                "visual_mode": body.visual_mode,
                "field_specific_data": generation_request.field_specific_data,
            },
        )
        increment_usage(user_id, "pitch_decks")
    except AppError:
        raise
    except Exception as exc:
        logger.error("generate.pitch_deck_failed", exc_info=True, extra={"request_id": rid, "user_id": user_id})
        raise UpstreamError("Failed to generate pitch deck", request_id=rid) from exc

    log_event(
        "info",
        "generate.pitch_deck",
        request_id=rid,
        user_id=user_id,
        document_id=document.id,
        event_type="pitch-deck",
        extra={"model": result.model, "tokens_used": result.tokens_used},
    )
    return {"id": document.id, "message": "Pitch deck generated successfully", "metadata": metadata}
