"""Industry field catalogue for the dynamic generation forms."""

from fastapi import APIRouter, Path

from pitchgenie.core.errors import NotFoundError
from pitchgenie.features.ai.fields import FIELD_CONFIGURATIONS, get_default_field, get_field_configuration

router = APIRouter(prefix="/api/fields", tags=["fields"])


@router.get("")
async def list_fields():
    return {
        "default": get_default_field(),
        "fields": [config.as_dict() for config in FIELD_CONFIGURATIONS.values()],
    }


@router.get("/{field_id}")
async def read_field(field_id: str = Path(...)):
    config = get_field_configuration(field_id)
    if config is None:
        raise NotFoundError(f"Unknown field: {field_id}")
    return config.as_dict()
