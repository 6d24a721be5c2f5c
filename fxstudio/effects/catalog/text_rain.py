"""Falling text rain."""

from fxstudio.effects.base import EffectDefinition, EffectSpec, ParamDef, validate_content
from fxstudio.effects.common import content_params
from fxstudio.effects.parsers import parse_float, parse_int, parse_list


class TextRainEffect(EffectDefinition):

    params = {
        **content_params(content_type="text", image_weight=0.5, blessing_types=[]),
        "textDirection": ParamDef("horizontal", None, "horizontal | vertical"),
        "fallDirection": ParamDef("down", None, "down | up"),
        "fontSizeRange": ParamDef([80, 160], parse_list([80, 160]), "Min/max font size"),
        "imageSizeRange": ParamDef([80, 150], parse_list([80, 150]), "Min/max image size"),
        "fallSpeed": ParamDef(0.15, parse_float(0.15), "Fall speed"),
        "density": ParamDef(2, parse_float(2), "Items spawned per second"),
        "laneCount": ParamDef(6, parse_int(6, 1, 20), "Number of lanes"),
    }

    def spec(self) -> EffectSpec:
        return EffectSpec(
            effect_id="text-rain-effect",
            name="Text rain",
            composition_id="TextRain",
            project_dir="text-rain-effect",
            description="Words, images or blessing symbols raining down the frame",
        )

    def validate(self, props):
        return validate_content(props)
