"""Waves of words flooding towards the viewer."""

from fxstudio.effects.base import EffectDefinition, EffectSpec, ParamDef, validate_content
from fxstudio.effects.common import content_params
from fxstudio.effects.parsers import parse_int, parse_list, parse_object

DEFAULT_WORDS = ["洪", "福", "财", "运", "吉", "祥"]

DEFAULT_WAVE_CONFIG = {
    "waveSpeed": 1.5,
    "waveAmplitude": 40,
    "waveFrequency": 0.02,
    "layerCount": 3,
}

DEFAULT_IMPACT_CONFIG = {
    "impactStart": 0.7,
    "impactScale": 2.5,
    "shakeIntensity": 10,
}


class TextFloodEffect(EffectDefinition):

    params = {
        **content_params(content_type="text", words=DEFAULT_WORDS, image_weight=0.3, blessing_types=[]),
        "particleCount": ParamDef(60, parse_int(60, 10, 200), "Number of items per wave"),
        "waveCount": ParamDef(5, parse_int(5, 1, 10), "Number of waves"),
        "direction": ParamDef("toward", None, "toward | away | left | right"),
        "waveConfig": ParamDef(DEFAULT_WAVE_CONFIG, parse_object(DEFAULT_WAVE_CONFIG), "Wave motion"),
        "impactConfig": ParamDef(DEFAULT_IMPACT_CONFIG, parse_object(DEFAULT_IMPACT_CONFIG), "Impact finale"),
        "fontSizeRange": ParamDef([60, 120], parse_list([60, 120]), "Min/max font size"),
        "imageSizeRange": ParamDef([80, 140], parse_list([80, 140]), "Min/max image size"),
    }

    def spec(self) -> EffectSpec:
        return EffectSpec(
            effect_id="text-flood-effect",
            name="Text flood",
            composition_id="TextFlood",
            project_dir="text-flood-effect",
            description="Waves of words rolling towards the viewer",
        )

    def validate(self, props):
        return validate_content(props)
