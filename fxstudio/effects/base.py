"""Effect definition interface and render bundle types."""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from fxstudio.effects.parsers import Parser


@dataclass
class ParamDef:
    """One effect parameter: default, lenient parser, description."""
    default: Any = None
    parser: Optional[Parser] = None
    description: str = ""

    def default_value(self) -> Any:
        if callable(self.default):
            return self.default()
        return copy.deepcopy(self.default)

    def resolve(self, raw: Any) -> Any:
        if raw is None or raw == "":
            return self.default_value()
        if self.parser is not None:
            return self.parser(raw)
        return raw

    def describe(self) -> Dict[str, Any]:
        default = None if callable(self.default) else self.default
        return {"default": default, "description": self.description}


@dataclass
class EffectSpec:
    """Metadata describing a registered effect."""
    effect_id: str
    name: str
    composition_id: str
    project_dir: str
    description: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)


class RenderBundle(BaseModel):
    """Validated, effect-specific render configuration.

    Consumed by the render executors; ``props`` is handed to the renderer
    untouched.
    """
    effect_id: str
    effect_name: str = ""
    composition_id: str
    project_path: str
    width: int = 720
    height: int = 1280
    fps: int = 24
    duration: float = 10
    props: Dict[str, Any] = Field(default_factory=dict)

    @property
    def frame_count(self) -> int:
        return max(1, int(round(self.duration * self.fps)))

    @property
    def clip_seconds(self) -> float:
        return self.frame_count / self.fps


class EffectDefinition(ABC):
    """Abstract base class for all effects in the catalog.

    To register a new effect:
    1. Create a new .py file in fxstudio/effects/catalog/
    2. Subclass EffectDefinition
    3. Implement spec() and declare ``params``
    4. The registry auto-discovers it at startup
    """

    params: Dict[str, ParamDef] = {}

    @abstractmethod
    def spec(self) -> EffectSpec:
        """Return effect metadata."""
        ...

    def validate(self, props: Dict[str, Any]) -> Optional[str]:
        """Return an error message, or None when the props are renderable."""
        return None

    def build_props(self, raw: Dict[str, Any], common: Dict[str, Any]) -> Dict[str, Any]:
        props = dict(common)
        for name, definition in self.params.items():
            props[name] = definition.resolve(raw.get(name))
        return props

    def post_process(
        self,
        props: Dict[str, Any],
        raw: Dict[str, Any],
        project_path: str,
        upload_dir: str,
    ) -> None:
        """Hook for effect-specific preparation (asset precomputation)."""
        return None

    def describe(self) -> Dict[str, Any]:
        spec = self.spec()
        return {
            "id": spec.effect_id,
            "name": spec.name,
            "composition_id": spec.composition_id,
            "description": spec.description,
            "params": {name: p.describe() for name, p in self.params.items()},
        }


def validate_content(props: Dict[str, Any]) -> Optional[str]:
    """Content-mode rules shared by the text effects."""
    content_type = props.get("contentType")
    has_text = bool(props.get("words"))
    has_images = bool(props.get("images"))

    if content_type == "blessing":
        return None
    if content_type == "text" and not has_text:
        return "text mode requires a list of words"
    if content_type == "image" and not has_images:
        return "image mode requires a list of images"
    if content_type == "mixed" and not has_text and not has_images:
        return "mixed mode requires words or images"
    if content_type not in (None, "text", "image", "mixed", "blessing"):
        return f"unknown contentType '{content_type}'"
    if content_type is None and not has_text:
        return "a list of words is required"
    return None


BlessingStyle = Dict[str, Any]

DEFAULT_BLESSING_STYLE: BlessingStyle = {
    "primaryColor": "#FFD700",
    "secondaryColor": "#FFA500",
    "enable3D": True,
    "glowIntensity": 1,
    "animationSpeed": 1,
}

BLESSING_TYPES: List[str] = ["goldCoin", "moneyBag", "luckyBag", "redPacket"]
