"""Generation service: model selection, fallback chains and prompt content."""
import asyncio

import pytest

from pitchgenie.core.errors import ValidationError
from pitchgenie.features.ai.client import Completion
from pitchgenie.features.ai.fields import FIELD_CONFIGURATIONS, get_default_field, get_field_configuration
from pitchgenie.features.ai.models import MODELS, select_model
from pitchgenie.features.ai.prompts import build_pitch_deck_prompt, build_proposal_prompt, format_field_data
from pitchgenie.features.ai.service import (
    FieldSpecificAIService,
    PitchDeckGenerationRequest,
    ProposalGenerationRequest,
)


class FakeClient:
    """Records calls; fails for any model listed in `failing`."""

    def __init__(self, failing=(), text="Generated content", tokens=321):
        self.failing = set(failing)
        self.text = text
        self.tokens = tokens
        self.calls = []

    async def generate_text(self, model, prompt, *, max_tokens, temperature):
        self.calls.append({"model": model, "prompt": prompt, "max_tokens": max_tokens, "temperature": temperature})
        if model in self.failing:
            raise RuntimeError(f"{model} unavailable")
        return Completion(text=self.text, total_tokens=self.tokens)


def run(coro):
    return asyncio.run(coro)


def proposal(**overrides):
    data = {"clientName": "Acme", "projectDescription": "Build a portal"}
    data.update(overrides)
    return ProposalGenerationRequest.model_validate(data)


def deck(**overrides):
    data = {"startupName": "Nimbus", "problem": "P", "solution": "S", "market": "M"}
    data.update(overrides)
    return PitchDeckGenerationRequest.model_validate(data)


def test_select_model():
    assert select_model("fallback") == MODELS["fallback"]
    assert select_model(None, "simple") == MODELS["lightweight"]
    assert select_model(None, "complex") == MODELS["primary"]
    assert select_model() == MODELS["primary"]


def test_field_catalogue():
    assert get_default_field() == "technology"
    assert set(FIELD_CONFIGURATIONS) == {"technology", "healthcare"}
    assert get_field_configuration("finance") is None
    assert len(get_field_configuration("healthcare").pitch_deck.slides) == 10


def test_proposal_request_defaults_and_coercion():
    req = ProposalGenerationRequest.model_validate({"clientName": "Acme", "services": "Consulting", "timeline": ""})
    assert req.field == "technology"
    assert req.project_title == "Custom Project"
    assert req.timeline == "To be determined"
    assert req.services == ["Consulting"]
    assert req.field_specific_data == {}


def test_proposal_success_uses_primary_with_4000_tokens():
    client = FakeClient()
    result = run(FieldSpecificAIService(client).generate_proposal(proposal()))
    assert result.success is True
    assert result.content == "Generated content"
    assert result.model == MODELS["primary"]
    assert result.tokens_used == 321
    assert client.calls[0]["max_tokens"] == 4000
    assert client.calls[0]["temperature"] == 0.7


def test_proposal_falls_back_to_lightweight_once():
    client = FakeClient(failing={MODELS["primary"]})
    result = run(FieldSpecificAIService(client).generate_proposal(proposal()))
    assert result.success is True
    assert result.model == MODELS["lightweight"]
    assert [c["model"] for c in client.calls] == [MODELS["primary"], MODELS["lightweight"]]


def test_proposal_total_failure_never_raises():
    client = FakeClient(failing=set(MODELS.values()))
    result = run(FieldSpecificAIService(client).generate_proposal(proposal()))
    assert result.success is False
    assert result.content == ""
    assert result.tokens_used == 0
    assert "unavailable" in result.error
    assert len(client.calls) == 2


def test_lightweight_preference_gets_no_retry():
    client = FakeClient(failing={MODELS["lightweight"]})
    result = run(FieldSpecificAIService(client).generate_proposal(proposal(modelPreference="lightweight")))
    assert result.success is False
    assert len(client.calls) == 1


def test_unknown_field_raises_before_any_call():
    client = FakeClient()
    service = FieldSpecificAIService(client)
    with pytest.raises(ValidationError, match="Unknown field: finance"):
        run(service.generate_proposal(proposal(field="finance")))
    with pytest.raises(ValidationError):
        run(service.generate_pitch_deck(deck(field="finance", exportFormat="pdf")))
    assert client.calls == []


def test_pdf_deck_uses_visual_model_with_8000_tokens():
    client = FakeClient()
    result = run(FieldSpecificAIService(client).generate_pitch_deck(deck(exportFormat="pdf")))
    assert result.success is True
    assert client.calls[0]["model"] == MODELS["visual"]
    assert client.calls[0]["max_tokens"] == 8000
    assert '<div class="slide"' in client.calls[0]["prompt"]


def test_pdf_deck_falls_through_visual_then_text():
    client = FakeClient(failing={MODELS["visual"]})
    result = run(FieldSpecificAIService(client).generate_pitch_deck(deck(exportFormat="pdf")))
    assert result.success is True
    assert result.model == MODELS["primary"]
    assert [(c["model"], c["max_tokens"]) for c in client.calls] == [
        (MODELS["visual"], 8000),
        (MODELS["visual"], 6000),
        (MODELS["primary"], 4000),
    ]


def test_visual_mode_deck_uses_visual_prompt():
    client = FakeClient()
    run(FieldSpecificAIService(client).generate_pitch_deck(deck(visualMode=True)))
    assert client.calls[0]["model"] == MODELS["visual"]
    assert client.calls[0]["max_tokens"] == 6000
    assert "Format the output with clear HTML-like structure" in client.calls[0]["prompt"]


def test_plain_deck_chain_is_bounded():
    client = FakeClient(failing=set(MODELS.values()))
    result = run(FieldSpecificAIService(client).generate_pitch_deck(deck(exportFormat="pdf")))
    assert result.success is False
    # pdf, visual, primary, lightweight
    assert len(client.calls) == 4


def test_proposal_prompt_contents():
    config = get_field_configuration("technology")
    req = proposal(
        services=["Web", "Mobile"],
        fieldSpecificData={"techStack": ["AWS", "Docker"], "projectComplexity": "Complex"},
    )
    prompt = build_proposal_prompt(req, config)
    assert "technology & software development consultant" in prompt
    assert "- Company: Not specified" in prompt
    assert "- Services Requested: Web, Mobile" in prompt
    assert "technically precise, solution-oriented" in prompt
    assert "- techStack: AWS, Docker" in prompt
    assert "1. Technical Requirements Analysis" in prompt
    assert "Target length: ~2500 words." in prompt


def test_healthcare_prompts_use_clinical_register():
    config = get_field_configuration("healthcare")
    assert "empathetic, evidence-based, authoritative" in build_proposal_prompt(proposal(field="healthcare"), config)
    deck_prompt = build_pitch_deck_prompt(deck(field="healthcare"), config)
    assert "clinically validated" in deck_prompt
    assert "**Slide 10: Patient Impact Metrics**" in deck_prompt
    assert "- Funding Ask: Seeking investment" in deck_prompt


def test_format_field_data():
    assert format_field_data({"a": "x", "b": ["y", "z"]}) == "- a: x\n- b: y, z"
    assert format_field_data({}) == ""
