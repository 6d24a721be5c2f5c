"""Text fireworks: words launch, burst, and rain down as particles."""

from fxstudio.effects.base import EffectDefinition, EffectSpec, ParamDef, validate_content
from fxstudio.effects.common import content_params
from fxstudio.effects.parsers import (
    parse_bool,
    parse_float,
    parse_int,
    parse_number_allow_zero,
)


class TextFireworkEffect(EffectDefinition):

    params = {
        **content_params(content_type="text", image_weight=0.5),
        "fontSize": ParamDef(60, parse_int(60), "Font size"),
        "imageSize": ParamDef(100, parse_int(100), "Image size"),
        "blessingSize": ParamDef(100, parse_int(100), "Blessing symbol size"),
        "textColor": ParamDef("#FFD700", None, "Text color"),
        "glowColor": ParamDef("#FFA500", None, "Glow color"),
        "glowIntensity": ParamDef(1.5, parse_float(1.5), "Glow intensity"),
        "launchHeight": ParamDef(0.2, parse_float(0.2, 0, 1), "Burst height (0-1 from top)"),
        "particleCount": ParamDef(80, parse_int(80, 10, 300), "Particles per burst"),
        "gravity": ParamDef(0.15, parse_float(0.15), "Gravity"),
        "wind": ParamDef(0, parse_number_allow_zero(0), "Wind"),
        "rainParticleSize": ParamDef(4, parse_float(4), "Rain particle size"),
        "textDuration": ParamDef(60, parse_int(60), "Frames the text stays visible"),
        "rainDuration": ParamDef(120, parse_int(120), "Frames of particle rain"),
        "interval": ParamDef(40, parse_int(40), "Frames between launches"),
        "enableLoop": ParamDef(True, parse_bool(True), "Loop launches"),
    }

    def spec(self) -> EffectSpec:
        return EffectSpec(
            effect_id="text-firework-effect",
            name="Text fireworks",
            composition_id="TextFirework",
            project_dir="text-firework-effect",
            description="Words launched as fireworks that burst into particle rain",
        )

    def validate(self, props):
        return validate_content(props)
