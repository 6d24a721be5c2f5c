"""Merge stage: filter graph builders and ffmpeg-backed merges."""

import asyncio
import os

import pydantic
import pytest

from conftest import requires_ffmpeg
from fxstudio.exceptions import MergeError
from fxstudio.jobs.models import MergeConfig, MergeMode
from fxstudio.render.media_info import probe_duration
from fxstudio.render.merge import (
    concat_list,
    merge_videos,
    overlay_filter,
    transition_filter,
    transition_offsets,
)


def test_concat_list_quotes_paths():
    body = concat_list(["/clips/a.mp4", "/clips/it's.mp4"])
    assert body == "file '/clips/a.mp4'\nfile '/clips/it'\\''s.mp4'\n"


def test_overlay_later_clips_on_top():
    merge = MergeConfig(mode=MergeMode.OVERLAY, width=64, height=64, fps=10, overlay_opacity=0.4)
    graph, label = overlay_filter(3, merge)

    assert label == "b2"
    assert "[0:v]scale=64:64,fps=10,setsar=1,format=yuv420p[v0]" in graph
    assert "[v1][v0]blend=all_mode=normal:all_opacity=0.4:shortest=1[b1]" in graph
    assert "[v2][b1]blend=all_mode=normal:all_opacity=0.4:shortest=1[b2]" in graph


def test_transition_offsets():
    assert transition_offsets([5, 5, 5], 0.5) == [4.5, 9.0]
    assert transition_offsets([2, 3], 1) == [1.0]
    assert transition_offsets([4], 0.5) == []


def test_transition_filter_chain():
    merge = MergeConfig(mode=MergeMode.TRANSITION, transition="wipeleft", transition_duration=0.5)
    graph, label = transition_filter([3.0, 4.0, 2.0], merge)

    assert label == "x2"
    assert "[v0][v1]xfade=transition=wipeleft:duration=0.5:offset=2.5[x1]" in graph
    assert "[x1][v2]xfade=transition=wipeleft:duration=0.5:offset=6[x2]" in graph


def test_merge_config_validation():
    with pytest.raises(pydantic.ValidationError):
        MergeConfig(mode=MergeMode.TRANSITION, transition="spin-into-space")
    with pytest.raises(pydantic.ValidationError):
        MergeConfig(mode=MergeMode.TRANSITION, transition_duration=-1)
    with pytest.raises(pydantic.ValidationError):
        MergeConfig(overlay_opacity=0)
    with pytest.raises(pydantic.ValidationError):
        MergeConfig(mode="zigzag")
    assert MergeConfig().mode == MergeMode.SEQUENCE


@pytest.mark.parametrize("mode", [MergeMode.SEQUENCE, MergeMode.OVERLAY])
def test_transition_fields_ignored_outside_transition_mode(mode):
    merge = MergeConfig(mode=mode, transition="fadewipe", transition_duration=-1)
    assert merge.mode == mode
    assert merge.transition == "fadewipe"


def test_merge_nothing_fails(tmp_path):
    with pytest.raises(MergeError):
        asyncio.run(merge_videos([], str(tmp_path / "out.mp4"), MergeConfig()))


def test_single_clip_is_copied(tmp_path, render_settings):
    clip = tmp_path / "clip.mp4"
    clip.write_bytes(b"only clip")
    out = tmp_path / "out.mp4"

    asyncio.run(merge_videos([str(clip)], str(out), MergeConfig(mode=MergeMode.OVERLAY)))

    assert out.read_bytes() == b"only clip"


def test_ffmpeg_failure_removes_partial_output(tmp_path, render_settings):
    bad = [tmp_path / "a.mp4", tmp_path / "b.mp4"]
    for path in bad:
        path.write_bytes(b"not a video")
    out = tmp_path / "out.mp4"

    with pytest.raises(MergeError):
        asyncio.run(merge_videos([str(p) for p in bad], str(out), MergeConfig()))
    assert not out.exists()
    assert not [n for n in os.listdir(render_settings.temp_dir) if n.startswith("concat-")]


def _make_clip(path, seconds, size=64, fps=10):
    from fxstudio.render.ffmpeg import run_process

    asyncio.run(run_process([
        "ffmpeg", "-y", "-v", "error",
        "-f", "lavfi", "-i", f"testsrc=size={size}x{size}:rate={fps}:duration={seconds}",
        "-c:v", "libx264", "-pix_fmt", "yuv420p", str(path),
    ]))
    return str(path)


@requires_ffmpeg
def test_transition_longer_than_clip_rejected(tmp_path, render_settings):
    clips = [_make_clip(tmp_path / "a.mp4", 1), _make_clip(tmp_path / "b.mp4", 1)]
    merge = MergeConfig(mode=MergeMode.TRANSITION, transition_duration=1.5, width=64, height=64, fps=10)
    out = tmp_path / "out.mp4"

    with pytest.raises(MergeError):
        asyncio.run(merge_videos(clips, str(out), merge))
    assert not out.exists()


@requires_ffmpeg
def test_transition_duration(tmp_path, render_settings):
    clips = [_make_clip(tmp_path / "a.mp4", 2), _make_clip(tmp_path / "b.mp4", 2)]
    merge = MergeConfig(mode=MergeMode.TRANSITION, transition_duration=0.5, width=64, height=64, fps=10)
    out = tmp_path / "out.mp4"

    asyncio.run(merge_videos(clips, str(out), merge))

    assert asyncio.run(probe_duration(str(out))) == pytest.approx(3.5, abs=0.15)


@requires_ffmpeg
def test_overlay_keeps_shared_duration(tmp_path, render_settings):
    clips = [_make_clip(tmp_path / "a.mp4", 2), _make_clip(tmp_path / "b.mp4", 1)]
    merge = MergeConfig(mode=MergeMode.OVERLAY, width=64, height=64, fps=10)
    out = tmp_path / "out.mp4"

    asyncio.run(merge_videos(clips, str(out), merge))

    assert asyncio.run(probe_duration(str(out))) == pytest.approx(1.0, abs=0.15)
