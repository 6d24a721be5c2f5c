"""Golden glowing 3D text ring."""

from fxstudio.effects.base import EffectDefinition, EffectSpec, ParamDef, validate_content
from fxstudio.effects.common import content_params
from fxstudio.effects.parsers import parse_float, parse_int


class TextRingEffect(EffectDefinition):

    params = {
        **content_params(content_type="text", image_weight=0.5),
        "fontSize": ParamDef(70, parse_int(70), "Font size"),
        "imageSize": ParamDef(90, parse_int(90), "Image size"),
        "blessingSize": ParamDef(90, parse_int(90), "Blessing symbol size"),
        "opacity": ParamDef(1, parse_float(1, 0, 1), "Item opacity"),
        "ringRadius": ParamDef(250, parse_float(250), "Ring radius"),
        "rotationSpeed": ParamDef(0.8, parse_float(0.8), "Rotation speed"),
        "glowIntensity": ParamDef(0.9, parse_float(0.9), "Glow intensity"),
        "cylinderHeight": ParamDef(400, parse_float(400), "Cylinder height"),
        "perspective": ParamDef(1000, parse_float(1000), "Perspective distance"),
        "mode": ParamDef("vertical", None, "vertical | horizontal"),
        "verticalPosition": ParamDef(0.5, parse_float(0.5, 0, 1), "Vertical position (0-1)"),
    }

    def spec(self) -> EffectSpec:
        return EffectSpec(
            effect_id="text-ring-effect",
            name="Golden text ring",
            composition_id="TextRing",
            project_dir="text-ring-effect",
            description="Glowing 3D words orbiting in a ring",
        )

    def validate(self, props):
        return validate_content(props)
