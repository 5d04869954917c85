"""OpenRouter model catalogue and selection."""
from types import MappingProxyType
from typing import Literal, Mapping, Optional

ModelPreference = Literal["primary", "fallback", "lightweight", "visual"]
Complexity = Literal["simple", "complex"]

MODELS: Mapping[str, str] = MappingProxyType({
    "primary": "meta-llama/llama-3.1-8b-instruct:free",
    "fallback": "google/gemma-2-9b-it:free",
    "lightweight": "deepseek/deepseek-r1-distill-llama-70b:free",
    "visual": "google/gemini-2.5-flash-image-preview:free",
})

# Token ceilings per prompt variant
TEXT_MAX_TOKENS = 4000
VISUAL_MAX_TOKENS = 6000
PDF_MAX_TOKENS = 8000
TEMPERATURE = 0.7


def select_model(preference: Optional[str] = None, complexity: Complexity = "complex") -> str:
    """An explicit preference wins; otherwise simple work goes to the lightweight model."""
    if preference:
        try:
            return MODELS[preference]
        except KeyError:
            raise ValueError(f"Unknown model preference: {preference}")
    return MODELS["lightweight"] if complexity == "simple" else MODELS["primary"]
