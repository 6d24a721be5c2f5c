"""Worker function: routes a job to the single or composite executor."""

from typing import Callable, Optional

from fxstudio.config import Settings, settings as default_settings
from fxstudio.effects.base import RenderBundle
from fxstudio.effects.registry import EffectRegistry, registry as default_registry
from fxstudio.jobs.models import JobKind, JobRecord, MergeConfig
from fxstudio.render.composite import render_composite
from fxstudio.render.executor import render_effect
from fxstudio.storage.outputs import OutputStore


class RenderWorker:
    """Callable handed to the runner; rebuilds bundles from the job record."""

    def __init__(
        self,
        registry: Optional[EffectRegistry] = None,
        outputs: Optional[OutputStore] = None,
        settings: Optional[Settings] = None,
    ):
        self._settings = settings or default_settings
        self._registry = registry or default_registry
        self._outputs = outputs or OutputStore(self._settings.output_dir)

    async def __call__(self, job: JobRecord, on_progress: Callable[[float], None]) -> str:
        if job.kind == JobKind.COMPOSITE:
            bundles = [RenderBundle.model_validate(b) for b in job.input_params.get("effects", [])]
            merge = MergeConfig.model_validate(job.input_params.get("merge", {}))
            return await render_composite(
                job.id,
                bundles,
                merge,
                on_progress,
                registry=self._registry,
                settings=self._settings,
                outputs=self._outputs,
            )

        bundle = RenderBundle.model_validate(job.input_params)
        return await render_effect(
            bundle,
            job.id,
            on_progress,
            settings=self._settings,
            outputs=self._outputs,
        )
