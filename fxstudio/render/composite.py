"""Composite render executor: several effects rendered one after another,
then merged into a single video."""

import logging
from typing import Callable, List, Optional, Sequence

from fxstudio.config import Settings, settings as default_settings
from fxstudio.effects.base import RenderBundle
from fxstudio.effects.registry import EffectRegistry, registry as default_registry
from fxstudio.exceptions import ParameterValidationError, StepFailureError
from fxstudio.jobs.models import MergeConfig
from fxstudio.render.executor import render_effect
from fxstudio.render.merge import merge_videos
from fxstudio.storage.outputs import OutputStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


def step_job_id(job_id: str, index: int) -> str:
    return f"{job_id}-effect-{index + 1}"


class CompositeProgress:
    """Weights step progress as ``(i + p) / N``; never decreases, never above 1."""

    def __init__(self, steps: int, on_progress: Optional[ProgressCallback] = None):
        self._steps = steps
        self._on_progress = on_progress
        self._last = 0.0

    @property
    def value(self) -> float:
        return self._last

    def step(self, index: int) -> ProgressCallback:
        def report(fraction: float) -> None:
            self.update((index + fraction) / self._steps)
        return report

    def update(self, value: float) -> None:
        value = min(1.0, value)
        if value <= self._last:
            return
        self._last = value
        if self._on_progress is not None:
            self._on_progress(value)


async def render_composite(
    job_id: str,
    bundles: Sequence[RenderBundle],
    merge: MergeConfig,
    on_progress: Optional[ProgressCallback] = None,
    *,
    registry: Optional[EffectRegistry] = None,
    settings: Optional[Settings] = None,
    outputs: Optional[OutputStore] = None,
) -> str:
    """Render every bundle in order and merge the clips.

    Returns the final artifact name. Intermediate clips never outlive
    the call.

    Raises:
        ParameterValidationError: empty list or a bundle no longer validates.
        StepFailureError: a step failed; later steps were skipped.
        MergeError: the clips could not be merged.
    """
    registry = registry or default_registry
    settings = settings or default_settings
    outputs = outputs or OutputStore(settings.output_dir)

    if not bundles:
        raise ParameterValidationError("a composite job needs at least one effect")
    for index, bundle in enumerate(bundles):
        registry.validate(bundle, index=index)

    outputs.ensure()
    progress = CompositeProgress(len(bundles), on_progress)
    clips: List[str] = []
    logger.info("Composite job %s: %d step(s), merge=%s", job_id, len(bundles), merge.mode.value)

    try:
        for index, bundle in enumerate(bundles):
            logger.info(
                "Composite job %s: step %d/%d (%s)", job_id, index + 1, len(bundles), bundle.effect_id
            )
            try:
                name = await render_effect(
                    bundle,
                    step_job_id(job_id, index),
                    progress.step(index),
                    settings=settings,
                    outputs=outputs,
                )
            except Exception as exc:
                raise StepFailureError(index, bundle.effect_id, exc) from exc
            clips.append(outputs.path_for(name))

        final_name = outputs.artifact_name(job_id)
        await merge_videos(clips, outputs.path_for(final_name), merge, settings)
    finally:
        for clip in clips:
            outputs.discard(clip)
        # a step that failed half way may have left its file behind
        if len(clips) < len(bundles):
            outputs.discard(outputs.path_for(outputs.artifact_name(step_job_id(job_id, len(clips)))))

    progress.update(1.0)
    logger.info("Composite job %s merged into %s", job_id, final_name)
    return final_name
