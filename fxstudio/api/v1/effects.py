"""Effects API: list the catalog and register effects at runtime."""

from typing import Any, Dict

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from fxstudio.effects.registry import PassThroughEffect, registry
from fxstudio.exceptions import ResourceNotFoundError, ValidationError

router = APIRouter()


class EffectRegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    name: str = ""
    composition_id: str = Field(default="", alias="compositionId")
    path: str = ""
    params: Dict[str, Any] = Field(default_factory=dict)


@router.get("/effects")
async def list_effects():
    """List all registered effects."""
    specs = registry.list_effects()
    return {
        "effects": [
            {
                "id": s.effect_id,
                "name": s.name,
                "composition_id": s.composition_id,
                "description": s.description,
            }
            for s in specs
        ],
        "count": len(specs),
    }


@router.get("/effects/{effect_id}")
async def get_effect(effect_id: str):
    """Effect metadata with parameter defaults and descriptions."""
    if not registry.has(effect_id):
        raise ResourceNotFoundError(f"Effect not found: {effect_id}", code="EFFECT_NOT_FOUND")
    return registry.get(effect_id).describe()


@router.post("/effects/register")
async def register_effect(request: EffectRegisterRequest):
    """Register a pass-through effect whose raw params go to the renderer as-is."""
    missing = [
        field
        for field, value in (
            ("id", request.id),
            ("name", request.name),
            ("compositionId", request.composition_id),
            ("path", request.path),
        )
        if not value
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    definition = PassThroughEffect(
        effect_id=request.id,
        name=request.name,
        composition_id=request.composition_id,
        project_dir=request.path,
        params=request.params,
    )
    registry.register(definition)
    return {"success": True, "effect": definition.describe()}
