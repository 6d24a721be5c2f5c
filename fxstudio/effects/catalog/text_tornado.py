"""Words swirling in a tornado funnel."""

from fxstudio.effects.base import EffectDefinition, EffectSpec, ParamDef, validate_content
from fxstudio.effects.common import content_params
from fxstudio.effects.parsers import parse_float, parse_int, parse_list


class TextTornadoEffect(EffectDefinition):

    params = {
        **content_params(content_type="text", image_weight=0.5, blessing_types=[]),
        "particleCount": ParamDef(60, parse_int(60, 10, 200), "Number of items in the funnel"),
        "baseRadius": ParamDef(300, parse_float(300), "Funnel radius at the bottom"),
        "topRadius": ParamDef(50, parse_float(50), "Funnel radius at the top"),
        "rotationSpeed": ParamDef(2, parse_float(2), "Rotation speed"),
        "liftSpeed": ParamDef(0.3, parse_float(0.3, 0, 1), "Lift speed (0-1)"),
        "funnelHeight": ParamDef(0.85, parse_float(0.85, 0.3, 1), "Funnel height (share of frame)"),
        "fontSizeRange": ParamDef([40, 90], parse_list([40, 90]), "Min/max font size"),
        "imageSizeRange": ParamDef([50, 100], parse_list([50, 100]), "Min/max image size"),
    }

    def spec(self) -> EffectSpec:
        return EffectSpec(
            effect_id="text-tornado-effect",
            name="Text tornado",
            composition_id="TextTornado",
            project_dir="text-tornado-effect",
            description="Words swirling upwards in a tornado funnel",
        )

    def validate(self, props):
        return validate_content(props)
