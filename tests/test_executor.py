"""Single-effect render executor against the fake renderer."""

import asyncio
import json
import os

import pytest

from fxstudio.exceptions import NonZeroExitError, RenderError, SpawnFailureError
from fxstudio.render.executor import build_render_command, render_effect


def _props_files(settings):
    if not os.path.isdir(settings.temp_dir):
        return []
    return [n for n in os.listdir(settings.temp_dir) if n.startswith("render-props-")]


def test_render_success(render_settings, outputs, bundle_factory):
    bundle = bundle_factory(words=["福"])
    progress = []

    name = asyncio.run(render_effect(bundle, "job-1", progress.append, outputs=outputs))

    assert name == "video-job-1.mp4"
    assert outputs.exists(name)
    assert progress == sorted(progress)
    assert len(set(progress)) == len(progress)
    assert progress[-1] == 1.0
    assert _props_files(render_settings) == []


def test_render_invocation(render_settings, outputs, bundle_factory, tmp_path):
    record = tmp_path / "record.json"
    bundle = bundle_factory(duration=2, fps=12, _fakeRecord=str(record))

    asyncio.run(render_effect(bundle, "job-2", outputs=outputs))

    seen = json.loads(record.read_text())
    argv = seen["argv"]
    assert argv[0] == render_settings.renderer_entry
    assert argv[1] == "FakeComp"
    assert argv[2] == outputs.path_for("video-job-2.mp4")
    assert argv[argv.index("--frames") + 1] == "0-23"
    assert os.path.realpath(seen["cwd"]) == os.path.realpath(bundle.project_path)
    assert seen["node_env"] == "production"
    assert seen["props"]["_fakeRecord"] == str(record)


def test_frame_cap(render_settings, bundle_factory, monkeypatch):
    monkeypatch.setattr(render_settings, "render_max_frames", 10)
    cmd = build_render_command(bundle_factory(duration=5, fps=24), "/out.mp4", "/p.json", render_settings)
    assert cmd[cmd.index("--frames") + 1] == "0-9"
    assert "--props=/p.json" in cmd
    assert cmd[cmd.index("--width") + 1] == "64"


def test_non_zero_exit(render_settings, outputs, bundle_factory):
    bundle = bundle_factory(_fakeExit=3)

    with pytest.raises(NonZeroExitError) as exc_info:
        asyncio.run(render_effect(bundle, "job-3", outputs=outputs))

    assert exc_info.value.exit_code == 3
    assert "composition crashed" in exc_info.value.message
    assert not outputs.exists("video-job-3.mp4")
    assert _props_files(render_settings) == []


def test_non_zero_exit_removes_partial_output(render_settings, outputs, bundle_factory):
    bundle = bundle_factory(_fakeExit=2, _fakePartial=True)

    with pytest.raises(NonZeroExitError):
        asyncio.run(render_effect(bundle, "job-3b", outputs=outputs))

    assert not os.path.exists(outputs.path_for("video-job-3b.mp4"))


def test_spawn_failure_cleans_props(render_settings, outputs, bundle_factory, monkeypatch):
    monkeypatch.setattr(render_settings, "renderer_command", "/nonexistent/fx-renderer render")

    with pytest.raises(SpawnFailureError):
        asyncio.run(render_effect(bundle_factory(), "job-4", outputs=outputs))

    assert _props_files(render_settings) == []


def test_missing_project_dir_is_spawn_failure(render_settings, outputs, bundle_factory, tmp_path):
    bundle = bundle_factory().model_copy(update={"project_path": str(tmp_path / "missing")})

    with pytest.raises(SpawnFailureError):
        asyncio.run(render_effect(bundle, "job-5", outputs=outputs))
    assert _props_files(render_settings) == []


def test_exit_zero_without_output(render_settings, outputs, bundle_factory):
    with pytest.raises(RenderError):
        asyncio.run(render_effect(bundle_factory(_fakeNoOutput=True), "job-6", outputs=outputs))


def test_cancel_terminates_renderer(render_settings, outputs, bundle_factory):
    bundle = bundle_factory(_fakeSteps=50, _fakeDelay=0.2, _fakePartial=True)
    progress = []

    async def scenario():
        task = asyncio.create_task(render_effect(bundle, "job-7", progress.append, outputs=outputs))
        for _ in range(100):
            if progress:
                break
            await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    assert progress and progress[-1] < 1.0
    assert not outputs.exists("video-job-7.mp4")
    assert _props_files(render_settings) == []


def test_concurrent_renders_share_output_dir(render_settings, outputs, bundle_factory):
    async def scenario():
        return await asyncio.gather(*[
            render_effect(bundle_factory(), f"job-c{i}", outputs=outputs) for i in range(50)
        ])

    names = asyncio.run(scenario())

    assert len(set(names)) == 50
    assert all(outputs.exists(name) for name in names)
    assert _props_files(render_settings) == []
