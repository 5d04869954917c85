"""Field-specific proposal and pitch-deck generation.

Every generation path ends in a GenerationResult; upstream failures never
raise out of this module. The only exception raised is ValidationError for
an unknown industry field, before any model call.

Fallback chains (each step runs at most once):
- proposal / plain deck: requested model -> lightweight model
- visual deck: visual model -> plain deck with the primary model
- PDF deck: PDF-optimized prompt -> visual deck -> plain deck
"""

import logging
import time
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from pitchgenie.core.errors import ValidationError
from pitchgenie.features.ai.client import OpenRouterClient
from pitchgenie.features.ai.fields import DEFAULT_FIELD, FieldConfiguration, get_field_configuration
from pitchgenie.features.ai.models import (
    MODELS,
    PDF_MAX_TOKENS,
    TEMPERATURE,
    TEXT_MAX_TOKENS,
    VISUAL_MAX_TOKENS,
    ModelPreference,
    select_model,
)
from pitchgenie.features.ai.prompts import (
    build_pdf_pitch_deck_prompt,
    build_pitch_deck_prompt,
    build_proposal_prompt,
    build_visual_pitch_deck_prompt,
)

logger = logging.getLogger("pitchgenie")

PromptBuilder = Callable[[Any, FieldConfiguration], str]


class CamelRequest(BaseModel):
    # Browser forms post camelCase; Python callers use snake_case
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        protected_namespaces=(),
    )


class ProposalGenerationRequest(CamelRequest):
    field: str = DEFAULT_FIELD
    client_name: str = Field(min_length=1)
    client_company: Optional[str] = None
    project_title: str = "Custom Project"
    project_description: str = ""
    goals: str = ""
    budget: str = ""
    timeline: str = "To be determined"
    services: List[str] = []
    field_specific_data: Dict[str, Any] = {}
    model_preference: Optional[ModelPreference] = None

    @field_validator("services", mode="before")
    @classmethod
    def _coerce_services(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        return [str(item) for item in value if item]

    @field_validator("project_title", "timeline", mode="before")
    @classmethod
    def _blank_to_default(cls, value, info):
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return value

    @field_validator("field_specific_data", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return value or {}


class PitchDeckGenerationRequest(CamelRequest):
    field: str = DEFAULT_FIELD
    startup_name: str = Field(min_length=1)
    tagline: Optional[str] = None
    problem: str = ""
    solution: str = ""
    market: str = ""
    business_model: Optional[str] = None
    team: Optional[str] = None
    funding: Optional[str] = None
    field_specific_data: Dict[str, Any] = {}
    model_preference: Optional[ModelPreference] = None
    visual_mode: bool = False
    export_format: Optional[Literal["pdf", "html"]] = None

    @field_validator("field_specific_data", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return value or {}


class GenerationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    content: str
    model: str
    tokens_used: int = 0
    generation_time: int = 0  # milliseconds
    error: Optional[str] = None


class FieldSpecificAIService:
    def __init__(self, client: Optional[OpenRouterClient] = None):
        self.client = client or OpenRouterClient()

    @staticmethod
    def _require_field(field_id: str) -> FieldConfiguration:
        config = get_field_configuration(field_id)
        if config is None:
            raise ValidationError(f"Unknown field: {field_id}")
        return config

    async def _attempt(self, model: str, prompt: str, max_tokens: int) -> GenerationResult:
        start = time.perf_counter()
        try:
            completion = await self.client.generate_text(
                model, prompt, max_tokens=max_tokens, temperature=TEMPERATURE
            )
        except Exception as exc:
            logger.warning("ai.attempt_failed", extra={"model": model, "error_message": str(exc)})
            return GenerationResult(
                success=False,
                content="",
                model=model,
                error=str(exc) or exc.__class__.__name__,
            )
        return GenerationResult(
            success=True,
            content=completion.text,
            model=model,
            tokens_used=completion.total_tokens,
            generation_time=int((time.perf_counter() - start) * 1000),
        )

    async def _generate_with_fallback(self, request, config: FieldConfiguration, build: PromptBuilder) -> GenerationResult:
        prompt = build(request, config)
        preference = request.model_preference
        result = None
        for _ in range(2):
            model = select_model(preference, "complex")
            result = await self._attempt(model, prompt, TEXT_MAX_TOKENS)
            if result.success or model == MODELS["lightweight"]:
                return result
            preference = "lightweight"
        return result

    async def generate_proposal(self, request: ProposalGenerationRequest) -> GenerationResult:
        config = self._require_field(request.field)
        return await self._generate_with_fallback(request, config, build_proposal_prompt)

    async def generate_pitch_deck(self, request: PitchDeckGenerationRequest) -> GenerationResult:
        config = self._require_field(request.field)

        if request.export_format == "pdf":
            stage = "pdf"
        elif request.visual_mode or request.model_preference == "visual":
            stage = "visual"
        else:
            stage = "text"

        if stage == "pdf":
            result = await self._attempt(
                MODELS["visual"], build_pdf_pitch_deck_prompt(request, config), PDF_MAX_TOKENS
            )
            if result.success:
                return result
            logger.warning("ai.pitch_deck.fallback", extra={"from_stage": "pdf", "to_stage": "visual"})
            request = request.model_copy(update={"export_format": "html"})
            stage = "visual"

        if stage == "visual":
            result = await self._attempt(
                MODELS["visual"], build_visual_pitch_deck_prompt(request, config), VISUAL_MAX_TOKENS
            )
            if result.success:
                return result
            logger.warning("ai.pitch_deck.fallback", extra={"from_stage": "visual", "to_stage": "text"})
            request = request.model_copy(update={"visual_mode": False, "model_preference": "primary"})

        return await self._generate_with_fallback(request, config, build_pitch_deck_prompt)


_service: Optional[FieldSpecificAIService] = None


def get_ai_service() -> FieldSpecificAIService:
    """FastAPI dependency; tests replace it through app.dependency_overrides."""
    global _service
    if _service is None:
        _service = FieldSpecificAIService()
    return _service
