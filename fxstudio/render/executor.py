"""Single-effect render executor.

Launches one renderer process for one RenderBundle, streams its progress,
and returns the produced artifact name. The props file is scoped to the
call and removed on every exit path.
"""

import asyncio
import collections
import logging
import os
import re
import shlex
from typing import AsyncIterator, Callable, Deque, List, Optional

from fxstudio.config import Settings, settings as default_settings
from fxstudio.effects.base import RenderBundle
from fxstudio.exceptions import NonZeroExitError, RenderError, SpawnFailureError
from fxstudio.render.ffmpeg import terminate_process
from fxstudio.render.progress import ProgressParser
from fxstudio.render.props import props_file
from fxstudio.storage.outputs import OutputStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

# stderr lines the renderer always prints; not worth a warning
STDERR_NOISE = ("react-dom.production.min.js",)

LINE_SPLIT_RE = re.compile(r"[\r\n]+")
READ_CHUNK = 4096


def frame_count(bundle: RenderBundle, settings: Settings) -> int:
    frames = bundle.frame_count
    if settings.render_max_frames > 0:
        frames = min(frames, settings.render_max_frames)
    return frames


def build_render_command(
    bundle: RenderBundle,
    output_path: str,
    props_path: str,
    settings: Settings,
) -> List[str]:
    frames = frame_count(bundle, settings)
    cmd = shlex.split(settings.renderer_command)
    cmd += [
        settings.renderer_entry,
        bundle.composition_id,
        output_path,
        f"--props={props_path}",
        "--codec", settings.renderer_codec,
        "--concurrency", str(settings.renderer_concurrency),
        "--frames", f"0-{frames - 1}",
        "--width", str(bundle.width),
        "--height", str(bundle.height),
    ]
    cmd += shlex.split(settings.renderer_extra_args)
    return cmd


def renderer_env(settings: Settings) -> dict:
    env = dict(os.environ)
    env["NODE_ENV"] = "production"
    if settings.renderer_browser_executable:
        env["REMOTION_BROWSER_EXECUTABLE"] = settings.renderer_browser_executable
    return env


async def iter_lines(stream: asyncio.StreamReader) -> AsyncIterator[str]:
    """Yield output lines split on both ``\\n`` and ``\\r`` (progress redraws)."""
    buffer = ""
    while True:
        chunk = await stream.read(READ_CHUNK)
        if not chunk:
            break
        buffer += chunk.decode(errors="ignore")
        parts = LINE_SPLIT_RE.split(buffer)
        buffer = parts.pop()
        for part in parts:
            if part.strip():
                yield part
    if buffer.strip():
        yield buffer


async def _pump_stdout(
    stream: asyncio.StreamReader,
    parser: ProgressParser,
    on_progress: Optional[ProgressCallback],
) -> None:
    async for line in iter_lines(stream):
        logger.debug("[renderer] %s", line.strip())
        fraction = parser.feed(line)
        if fraction is not None and on_progress is not None:
            on_progress(fraction)


async def _drain_stderr(stream: asyncio.StreamReader, keep: Deque[str]) -> None:
    async for line in iter_lines(stream):
        line = line.strip()
        if any(marker in line for marker in STDERR_NOISE):
            continue
        keep.append(line)
        logger.warning("[renderer stderr] %s", line)


async def render_effect(
    bundle: RenderBundle,
    job_id: str,
    on_progress: Optional[ProgressCallback] = None,
    *,
    settings: Optional[Settings] = None,
    outputs: Optional[OutputStore] = None,
) -> str:
    """Render one effect and return the output artifact name.

    Raises:
        SpawnFailureError: the renderer could not be started.
        NonZeroExitError: the renderer exited with a failure code.
        RenderError: the renderer exited 0 without producing the file.
    """
    settings = settings or default_settings
    outputs = outputs or OutputStore(settings.output_dir)
    outputs.ensure()

    output_name = outputs.artifact_name(job_id)
    output_path = outputs.path_for(output_name)

    with props_file(settings.temp_dir, job_id, bundle.props) as props_path:
        cmd = build_render_command(bundle, output_path, props_path, settings)
        logger.info(
            "Rendering %s [%s] for job %s: %d frames at %dx%d@%d",
            bundle.effect_id, bundle.composition_id, job_id,
            frame_count(bundle, settings), bundle.width, bundle.height, bundle.fps,
        )
        logger.debug("Command: %s (cwd=%s)", " ".join(cmd), bundle.project_path)

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=bundle.project_path,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=renderer_env(settings),
            )
        except OSError as exc:
            raise SpawnFailureError(cmd[0], str(exc)) from exc

        parser = ProgressParser()
        stderr_tail: Deque[str] = collections.deque(maxlen=10)
        try:
            await asyncio.gather(
                _pump_stdout(process.stdout, parser, on_progress),
                _drain_stderr(process.stderr, stderr_tail),
            )
            rc = await process.wait()
        except BaseException:
            # cancellation, timeout or a failing progress callback
            await terminate_process(process, settings.renderer_kill_grace_seconds)
            outputs.discard(output_path)
            raise

    if rc != 0:
        outputs.discard(output_path)
        raise NonZeroExitError(rc, "renderer", " | ".join(stderr_tail))

    if not outputs.exists(output_name):
        raise RenderError(f"Renderer exited 0 but produced no file at {output_path}")

    if on_progress is not None:
        on_progress(1.0)
    logger.info("Rendered %s for job %s -> %s", bundle.effect_id, job_id, output_name)
    return output_name
