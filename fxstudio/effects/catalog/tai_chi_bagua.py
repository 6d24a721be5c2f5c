"""Rotating tai chi symbol inside a bagua ring."""

from fxstudio.effects.base import EffectDefinition, EffectSpec, ParamDef
from fxstudio.effects.parsers import parse_bool, parse_float, parse_int

# Square output unless the request sets a size.
SQUARE_SIZE = 720


class TaiChiBaguaEffect(EffectDefinition):

    params = {
        "yangColor": ParamDef("#FFFFFF", None, "Yang color"),
        "yinColor": ParamDef("#000000", None, "Yin color"),
        "glowIntensity": ParamDef(0.8, parse_float(0.8), "Glow intensity"),
        "taichiRotationSpeed": ParamDef(1, parse_float(1), "Tai chi rotation speed"),
        "baguaRotationSpeed": ParamDef(-0.5, parse_float(-0.5), "Bagua rotation speed"),
        "taichiSize": ParamDef(200, parse_float(200), "Tai chi diameter"),
        "baguaRadius": ParamDef(220, parse_float(220), "Bagua ring radius"),
        "showLabels": ParamDef(True, parse_bool(True), "Show trigram labels"),
        "showParticles": ParamDef(True, parse_bool(True), "Show particles"),
        "showEnergyField": ParamDef(True, parse_bool(True), "Show energy field"),
        "labelOffset": ParamDef(40, parse_float(40), "Label distance from the ring"),
        "particleCount": ParamDef(40, parse_int(40), "Particle count"),
        "particleSpeed": ParamDef(1, parse_float(1), "Particle speed"),
        "viewAngle": ParamDef(0, parse_float(0), "View tilt in degrees"),
        "perspectiveDistance": ParamDef(1000, parse_float(1000), "Perspective distance"),
        "verticalPosition": ParamDef(0.5, parse_float(0.5, 0, 1), "Vertical position (0-1)"),
        "enableGoldenSparkle": ParamDef(True, parse_bool(True), "Golden sparkles"),
        "sparkleDensity": ParamDef(1, parse_float(1), "Sparkle density"),
        "enableMysticalAura": ParamDef(True, parse_bool(True), "Mystical aura"),
        "auraIntensity": ParamDef(0.6, parse_float(0.6), "Aura intensity"),
    }

    def spec(self) -> EffectSpec:
        return EffectSpec(
            effect_id="tai-chi-bagua-effect",
            name="Tai chi bagua",
            composition_id="TaiChiBagua",
            project_dir="tai-chi-bagua-effect",
            description="Rotating tai chi symbol framed by the eight trigrams",
        )

    def build_props(self, raw, common):
        props = super().build_props(raw, common)
        if not raw.get("width") and not raw.get("height"):
            props["width"] = SQUARE_SIZE
            props["height"] = SQUARE_SIZE
        return props
