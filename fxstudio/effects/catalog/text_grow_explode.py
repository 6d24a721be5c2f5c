"""A name grows from a shape, explodes, and falls as word particles."""

import math

from fxstudio.effects.assets import upload_path
from fxstudio.effects.base import EffectDefinition, EffectSpec, ParamDef
from fxstudio.effects.contour import extract_contour_points
from fxstudio.effects.parsers import parse_float, parse_int, parse_list, parse_number_allow_zero

PHASES = ("growDuration", "holdDuration", "explodeDuration", "fallDuration")


class TextGrowExplodeEffect(EffectDefinition):

    params = {
        "name": ParamDef("", None, "Name that grows out of the shape"),
        "words": ParamDef([], parse_list([]), "Word fragments for the explosion"),
        "growDuration": ParamDef(90, parse_int(90), "Grow phase in frames"),
        "holdDuration": ParamDef(30, parse_int(30), "Hold phase in frames"),
        "explodeDuration": ParamDef(30, parse_int(30), "Explode phase in frames"),
        "fallDuration": ParamDef(90, parse_int(90), "Fall phase in frames"),
        "fontSize": ParamDef(120, parse_int(120), "Name font size"),
        "particleFontSize": ParamDef(24, parse_int(24), "Particle font size"),
        "textColor": ParamDef("#ffd700", None, "Text color"),
        "glowColor": ParamDef("#ffaa00", None, "Glow color"),
        "glowIntensity": ParamDef(1, parse_float(1), "Glow intensity"),
        "particleCount": ParamDef(80, parse_int(80), "Particle count"),
        "gravity": ParamDef(0.15, parse_float(0.15), "Gravity"),
        "wind": ParamDef(0, parse_number_allow_zero(0), "Wind"),
        "threshold": ParamDef(128, parse_int(128, 1, 255), "Contour brightness threshold"),
        "sampleDensity": ParamDef(6, parse_int(6, 1, 64), "Contour sampling step in pixels"),
        "growStyle": ParamDef("tree", None, "tree | spiral | random"),
        "backgroundOpacity": ParamDef(0.9, parse_float(0.9, 0, 1), "Background opacity"),
        "imageSource": ParamDef(None, None, "Shape image"),
    }

    def spec(self) -> EffectSpec:
        return EffectSpec(
            effect_id="text-grow-explode-effect",
            name="Name grow and explode",
            composition_id="TextGrowExplode",
            project_dir="text-grow-explode-effect",
            description="A name grows along an image contour, then bursts into words",
        )

    def validate(self, props):
        if not props.get("name"):
            return "a name is required"
        if not props.get("words"):
            return "a list of word fragments is required"
        return None

    def build_props(self, raw, common):
        props = super().build_props(raw, common)
        if raw.get("backgroundFile"):
            props["imageSource"] = raw["backgroundFile"]
        if not raw.get("duration"):
            total_frames = sum(props[phase] for phase in PHASES)
            props["duration"] = math.ceil(total_frames / (props.get("fps") or 24))
        return props

    def post_process(self, props, raw, project_path, upload_dir):
        image = upload_path(upload_dir, raw.get("backgroundFile"))
        if image is None:
            return
        props["contourPointsData"] = extract_contour_points(
            image,
            props["width"],
            props["height"],
            threshold=props["threshold"],
            sample_density=props["sampleDensity"],
        )
