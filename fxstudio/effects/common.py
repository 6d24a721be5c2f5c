"""Parameters shared by every effect (video size, background, overlay, audio)."""

import random
from typing import Any, Dict, List, Optional

from fxstudio.effects.base import (
    BLESSING_TYPES,
    DEFAULT_BLESSING_STYLE,
    ParamDef,
)
from fxstudio.effects.parsers import (
    parse_bool,
    parse_float,
    parse_int,
    parse_list,
    parse_object,
)


def random_seed() -> int:
    return random.randint(0, 9999)


COMMON_PARAMS: Dict[str, ParamDef] = {
    # Video
    "width": ParamDef(720, parse_int(720), "Video width"),
    "height": ParamDef(1280, parse_int(1280), "Video height"),
    "fps": ParamDef(24, parse_int(24), "Frame rate"),
    "duration": ParamDef(10, parse_float(10), "Duration in seconds"),

    # Background
    "backgroundType": ParamDef("color", None, "color | image | video"),
    "backgroundColor": ParamDef("#1a1a2e", None, "Background color"),
    "backgroundSource": ParamDef(None, None, "Background image or video file"),
    "backgroundVideoLoop": ParamDef(True, parse_bool(True), "Loop the background video"),
    "backgroundVideoMuted": ParamDef(True, parse_bool(True), "Mute the background video"),

    # Overlay
    "overlayColor": ParamDef("#000000", None, "Overlay color"),
    "overlayOpacity": ParamDef(0.2, parse_float(0.2, 0, 1), "Overlay opacity"),

    # Audio
    "audioEnabled": ParamDef(False, parse_bool(False), "Play background audio"),
    "audioSource": ParamDef("coin-sound.mp3", None, "Audio file"),
    "audioVolume": ParamDef(0.5, parse_float(0.5, 0, 1), "Audio volume (0-1)"),
    "audioLoop": ParamDef(True, parse_bool(True), "Loop the audio"),

    "seed": ParamDef(random_seed, parse_int(0), "Random seed"),
}


def build_common_params(raw: Dict[str, Any]) -> Dict[str, Any]:
    result = {name: definition.resolve(raw.get(name)) for name, definition in COMMON_PARAMS.items()}
    if not result["seed"]:
        result["seed"] = random_seed()
    return result


def content_params(
    content_type: str = "text",
    words: Optional[List[str]] = None,
    image_weight: float = 0.5,
    blessing_types: Optional[List[str]] = None,
) -> Dict[str, ParamDef]:
    """Content selection parameters used by the text effects."""
    return {
        "contentType": ParamDef(content_type, None, "text | image | blessing | mixed"),
        "words": ParamDef(list(words or []), parse_list(words), "Words to render"),
        "images": ParamDef([], parse_list([]), "Image paths relative to the public dir"),
        "blessingTypes": ParamDef(
            list(blessing_types if blessing_types is not None else BLESSING_TYPES),
            parse_list(blessing_types if blessing_types is not None else BLESSING_TYPES),
            "Blessing symbols to use",
        ),
        "imageWeight": ParamDef(
            image_weight, parse_float(image_weight, 0, 1), "Image share in mixed mode (0-1)"
        ),
        "blessingStyle": ParamDef(
            DEFAULT_BLESSING_STYLE, parse_object(DEFAULT_BLESSING_STYLE), "Blessing symbol style"
        ),
    }
