"""Text breaking through the screen towards the viewer."""

from fxstudio.effects.base import BLESSING_TYPES, EffectDefinition, EffectSpec, ParamDef, validate_content
from fxstudio.effects.common import content_params
from fxstudio.effects.parsers import parse_float, parse_int


class TextBreakthroughEffect(EffectDefinition):

    params = {
        **content_params(content_type="mixed", image_weight=0.3, blessing_types=BLESSING_TYPES),
        "fontSize": ParamDef(120, parse_int(120), "Font size"),
        "imageSize": ParamDef(150, parse_int(150), "Image size"),
        "blessingSize": ParamDef(120, parse_int(120), "Blessing symbol size"),
        "fontFamily": ParamDef("PingFang SC, Microsoft YaHei, SimHei, sans-serif", None, "Font family"),
        "fontWeight": ParamDef(900, parse_int(900), "Font weight"),
        "textColor": ParamDef("#ffd700", None, "Text color"),
        "glowColor": ParamDef("#ffaa00", None, "Glow color"),
        "glowIntensity": ParamDef(1, parse_float(1), "Glow intensity"),
        "impactScale": ParamDef(1.4, parse_float(1.4), "Scale at the moment of impact"),
        "shakeIntensity": ParamDef(8, parse_float(8), "Screen shake intensity"),
        "interval": ParamDef(30, parse_int(30), "Frames between items"),
    }

    def spec(self) -> EffectSpec:
        return EffectSpec(
            effect_id="text-breakthrough-effect",
            name="Text breakthrough",
            composition_id="TextBreakthrough",
            project_dir="text-breakthrough-effect",
            description="Words and symbols smashing through the screen",
        )

    def validate(self, props):
        if props.get("contentType") == "mixed" and props.get("blessingTypes"):
            return None
        return validate_content(props)
