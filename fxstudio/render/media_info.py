"""Media file information using ffprobe."""

import json
from typing import Optional

from fxstudio.config import Settings, settings as default_settings
from fxstudio.render.ffmpeg import run_process


async def probe_duration(file_path: str, settings: Optional[Settings] = None) -> float:
    """
    Get media file duration in seconds.

    Args:
        file_path: Path to media file
        settings: Settings providing the ffprobe path

    Returns:
        Duration in seconds

    Raises:
        RuntimeError: If ffprobe output carries no duration
        SpawnFailureError / NonZeroExitError: If ffprobe fails
    """
    settings = settings or default_settings
    stdout = await run_process([
        settings.ffprobe_path,
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        file_path,
    ])
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise RuntimeError(f"Failed to parse ffprobe output: {e}")

    duration = data.get("format", {}).get("duration")
    if duration is None:
        raise RuntimeError(f"Duration not found in: {file_path}")
    return float(duration)
