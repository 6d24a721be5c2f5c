"""
Pytest fixtures for fxstudio tests.

The effect renderer is replaced by tests/fake_renderer.py, run with the
current interpreter. Tests that need real clips are marked with
``requires_ffmpeg`` and skipped when ffmpeg/ffprobe are not installed.
"""

import shlex
import shutil
import sys
from pathlib import Path

import pytest

from fxstudio.config import settings
from fxstudio.effects.base import RenderBundle
from fxstudio.effects.registry import EffectRegistry, PassThroughEffect
from fxstudio.storage.outputs import OutputStore

FAKE_RENDERER = Path(__file__).with_name("fake_renderer.py")
FAKE_EFFECT_ID = "fake-effect"


def _ffmpeg_available() -> bool:
    return shutil.which("ffmpeg") is not None and shutil.which("ffprobe") is not None


requires_ffmpeg = pytest.mark.skipif(
    not _ffmpeg_available(),
    reason="ffmpeg/ffprobe not installed",
)


@pytest.fixture
def render_settings(tmp_path, monkeypatch):
    """Global settings pointed at tmp_path and the fake renderer."""
    values = {
        "output_dir": str(tmp_path / "outputs"),
        "temp_dir": str(tmp_path / "tmp"),
        "upload_dir": str(tmp_path / "uploads"),
        "effects_root": str(tmp_path / "effects"),
        "renderer_command": f"{shlex.quote(sys.executable)} {shlex.quote(str(FAKE_RENDERER))}",
        "renderer_extra_args": "",
        "renderer_kill_grace_seconds": 1.0,
        "render_max_frames": 0,
        "job_timeout_seconds": 0,
        "max_concurrent_jobs": 0,
    }
    for name, value in values.items():
        monkeypatch.setattr(settings, name, value)
    (tmp_path / "effects").mkdir()
    (tmp_path / "uploads").mkdir()
    return settings


@pytest.fixture
def outputs(render_settings):
    return OutputStore(render_settings.output_dir)


@pytest.fixture
def effects(render_settings):
    """A discovered registry plus a pass-through ``fake-effect``.

    Every effect gets an (empty) project directory to run in.
    """
    registry = EffectRegistry(render_settings)
    registry.discover()
    registry.register(
        PassThroughEffect(FAKE_EFFECT_ID, "Fake effect", "FakeComp", FAKE_EFFECT_ID)
    )
    for spec in registry.list_effects():
        Path(registry.project_path(spec)).mkdir(parents=True, exist_ok=True)
    return registry


def make_bundle(project_path, duration=1, fps=10, width=64, height=64, **props) -> RenderBundle:
    """A fake-effect bundle whose props steer the fake renderer."""
    return RenderBundle(
        effect_id=FAKE_EFFECT_ID,
        effect_name="Fake effect",
        composition_id="FakeComp",
        project_path=str(project_path),
        width=width,
        height=height,
        fps=fps,
        duration=duration,
        props={"width": width, "height": height, "fps": fps, "duration": duration, **props},
    )


@pytest.fixture
def bundle_factory(effects):
    project_path = effects.project_path(effects.get(FAKE_EFFECT_ID).spec())

    def factory(**kwargs) -> RenderBundle:
        return make_bundle(project_path, **kwargs)

    return factory
