"""Merge stage: combine rendered clips into one video with ffmpeg.

The filter builders are plain functions so the graphs can be checked
without running ffmpeg.
"""

import logging
import os
import shutil
from typing import List, Optional, Sequence, Tuple

from fxstudio.config import Settings, settings as default_settings
from fxstudio.exceptions import MergeError, RenderError
from fxstudio.jobs.models import MergeConfig, MergeMode
from fxstudio.render.ffmpeg import run_process
from fxstudio.render.media_info import probe_duration

logger = logging.getLogger(__name__)


def concat_list(files: Sequence[str]) -> str:
    """Body of an ffmpeg concat demuxer list file."""
    lines = []
    for path in files:
        escaped = os.path.abspath(path).replace("'", "'\\''")
        lines.append(f"file '{escaped}'")
    return "\n".join(lines) + "\n"


def normalize_filter(index: int, merge: MergeConfig) -> str:
    """Scale, retime and reformat input ``index`` into label ``[v<index>]``."""
    return (
        f"[{index}:v]scale={merge.width}:{merge.height},"
        f"fps={merge.fps},setsar=1,format=yuv420p[v{index}]"
    )


def overlay_filter(count: int, merge: MergeConfig) -> Tuple[str, str]:
    """Stack inputs so that later clips sit on top of earlier ones.

    Returns the filter graph and its output label.
    """
    parts = [normalize_filter(i, merge) for i in range(count)]
    current = "v0"
    for k in range(1, count):
        label = f"b{k}"
        # blend's first input is the top layer
        parts.append(
            f"[v{k}][{current}]blend=all_mode=normal:"
            f"all_opacity={merge.overlay_opacity:g}:shortest=1[{label}]"
        )
        current = label
    return ";".join(parts), current


def transition_offsets(durations: Sequence[float], transition_duration: float) -> List[float]:
    """Offset of each xfade: sum of the first k clips minus k overlaps."""
    offsets = []
    total = 0.0
    for k in range(1, len(durations)):
        total += durations[k - 1]
        offsets.append(round(total - k * transition_duration, 3))
    return offsets


def transition_filter(durations: Sequence[float], merge: MergeConfig) -> Tuple[str, str]:
    count = len(durations)
    parts = [normalize_filter(i, merge) for i in range(count)]
    current = "v0"
    for k, offset in enumerate(transition_offsets(durations, merge.transition_duration), start=1):
        label = f"x{k}"
        parts.append(
            f"[{current}][v{k}]xfade=transition={merge.transition}:"
            f"duration={merge.transition_duration:g}:offset={offset:g}[{label}]"
        )
        current = label
    return ";".join(parts), current


def encode_args(settings: Settings) -> List[str]:
    return [
        "-c:v", "libx264",
        "-crf", str(settings.merge_crf),
        "-preset", settings.merge_preset,
        "-pix_fmt", "yuv420p",
        "-movflags", "+faststart",
    ]


async def _merge_sequence(
    files: Sequence[str], output_path: str, settings: Settings
) -> None:
    os.makedirs(settings.temp_dir, exist_ok=True)
    list_path = os.path.join(
        settings.temp_dir, f"concat-{os.path.splitext(os.path.basename(output_path))[0]}.txt"
    )
    with open(list_path, "w", encoding="utf-8") as fh:
        fh.write(concat_list(files))
    try:
        await run_process([
            settings.ffmpeg_path, "-y",
            "-f", "concat", "-safe", "0",
            "-i", list_path,
            "-c", "copy",
            output_path,
        ])
    finally:
        try:
            os.remove(list_path)
        except OSError as exc:
            logger.warning("Could not remove concat list %s: %s", list_path, exc)


async def _merge_filtered(
    files: Sequence[str],
    output_path: str,
    graph: str,
    label: str,
    settings: Settings,
) -> None:
    args = [settings.ffmpeg_path, "-y"]
    for path in files:
        args += ["-i", path]
    args += ["-filter_complex", graph, "-map", f"[{label}]"]
    args += encode_args(settings)
    args.append(output_path)
    await run_process(args)


async def merge_videos(
    files: Sequence[str],
    output_path: str,
    merge: MergeConfig,
    settings: Optional[Settings] = None,
) -> str:
    """Combine ``files`` into ``output_path`` according to ``merge``.

    Raises:
        MergeError: ffmpeg failed or the inputs cannot be merged this way.
            Any partial output file is removed first.
    """
    settings = settings or default_settings
    if not files:
        raise MergeError(merge.mode.value, "no clips to merge")

    logger.info("Merging %d clip(s) with mode=%s into %s", len(files), merge.mode.value, output_path)
    try:
        if len(files) == 1:
            shutil.copyfile(files[0], output_path)
        elif merge.mode == MergeMode.SEQUENCE:
            await _merge_sequence(files, output_path, settings)
        elif merge.mode == MergeMode.OVERLAY:
            graph, label = overlay_filter(len(files), merge)
            await _merge_filtered(files, output_path, graph, label, settings)
        else:
            durations = [await probe_duration(path, settings) for path in files]
            shortest = min(durations)
            if merge.transition_duration >= shortest:
                raise MergeError(
                    merge.mode.value,
                    f"transition of {merge.transition_duration:g}s is not shorter "
                    f"than the shortest clip ({shortest:.2f}s)",
                )
            graph, label = transition_filter(durations, merge)
            await _merge_filtered(files, output_path, graph, label, settings)
    except MergeError:
        _remove_partial(output_path)
        raise
    except (RenderError, RuntimeError, OSError) as exc:
        _remove_partial(output_path)
        raise MergeError(merge.mode.value, str(exc)) from exc
    except BaseException:
        _remove_partial(output_path)
        raise

    return output_path


def _remove_partial(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Could not remove partial output %s: %s", path, exc)
