"""Effect registry: auto-discovery of the catalog and render bundle building."""

import importlib
import inspect
import logging
import os
import pkgutil
import threading
from typing import Any, Dict, List, Optional

from fxstudio.config import Settings, settings as default_settings
from fxstudio.effects.assets import stage_background
from fxstudio.effects.base import EffectDefinition, EffectSpec, ParamDef, RenderBundle
from fxstudio.effects.common import build_common_params
from fxstudio.exceptions import EffectNotFoundError, ParameterValidationError

logger = logging.getLogger(__name__)


class EffectRegistry:
    """Discovers, manages, and serves effect definitions.

    - Auto-discovers EffectDefinition subclasses in fxstudio/effects/catalog/
    - Builds validated RenderBundles from raw request parameters
    - Accepts runtime registrations (overwriting an id logs a warning)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings or default_settings
        self._effects: Dict[str, EffectDefinition] = {}
        self._lock = threading.Lock()

    def discover(self) -> None:
        """Scan the catalog package for EffectDefinition subclasses and register them."""
        catalog = importlib.import_module("fxstudio.effects.catalog")

        for _, modname, ispkg in pkgutil.iter_modules(catalog.__path__, prefix="fxstudio.effects.catalog."):
            if ispkg:
                continue
            try:
                mod = importlib.import_module(modname)
            except ImportError as e:
                logger.warning("Failed to import %s: %s", modname, e)
                continue

            for _, obj in inspect.getmembers(mod, inspect.isclass):
                if (
                    issubclass(obj, EffectDefinition)
                    and obj is not EffectDefinition
                    and not inspect.isabstract(obj)
                    and obj.__module__ == modname
                ):
                    self.register(obj())

    def register(self, definition: EffectDefinition) -> None:
        effect_id = definition.spec().effect_id
        with self._lock:
            if effect_id in self._effects:
                logger.warning("Effect %s already registered, overwriting", effect_id)
            self._effects[effect_id] = definition
        logger.info("Registered effect: %s (%s)", effect_id, definition.spec().name)

    def get(self, effect_id: str) -> EffectDefinition:
        with self._lock:
            definition = self._effects.get(effect_id)
        if definition is None:
            raise EffectNotFoundError(effect_id, available=self.effect_ids())
        return definition

    def has(self, effect_id: str) -> bool:
        with self._lock:
            return effect_id in self._effects

    def effect_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._effects)

    def list_effects(self) -> List[EffectSpec]:
        with self._lock:
            definitions = list(self._effects.values())
        return sorted((d.spec() for d in definitions), key=lambda s: s.effect_id)

    def project_path(self, spec: EffectSpec) -> str:
        if os.path.isabs(spec.project_dir):
            return spec.project_dir
        return os.path.abspath(os.path.join(self._settings.effects_root, spec.project_dir))

    def build(
        self,
        effect_id: str,
        raw: Dict[str, Any],
        overrides: Optional[Dict[str, Any]] = None,
        index: Optional[int] = None,
    ) -> RenderBundle:
        """Turn raw request fields into a validated RenderBundle.

        ``overrides`` replaces already-parsed values (composite jobs force
        their target size and fps onto every step).

        Raises:
            EffectNotFoundError: unknown effect id.
            ParameterValidationError: the effect rejected the parameters.
        """
        definition = self.get(effect_id)
        spec = definition.spec()
        project_path = self.project_path(spec)

        common = build_common_params(raw)
        props = definition.build_props(raw, common)
        if overrides:
            props.update(overrides)

        stage_background(props, raw.get("backgroundFile"), project_path, self._settings.upload_dir)
        definition.post_process(props, raw, project_path, self._settings.upload_dir)

        bundle = RenderBundle(
            effect_id=effect_id,
            effect_name=spec.name,
            composition_id=spec.composition_id,
            project_path=project_path,
            width=props["width"],
            height=props["height"],
            fps=props["fps"],
            duration=props["duration"],
            props=props,
        )
        self.validate(bundle, index=index)
        return bundle

    def validate(self, bundle: RenderBundle, index: Optional[int] = None) -> None:
        """Apply the effect's validation rules to an already-built bundle."""
        definition = self.get(bundle.effect_id)
        if bundle.width <= 0 or bundle.height <= 0:
            raise ParameterValidationError("width and height must be positive", effect_id=bundle.effect_id, index=index)
        if bundle.fps <= 0 or bundle.duration <= 0:
            raise ParameterValidationError("fps and duration must be positive", effect_id=bundle.effect_id, index=index)
        error = definition.validate(bundle.props)
        if error:
            raise ParameterValidationError(error, effect_id=bundle.effect_id, index=index)


class PassThroughEffect(EffectDefinition):
    """An effect registered at runtime: raw params go to the renderer as-is."""

    def __init__(
        self,
        effect_id: str,
        name: str,
        composition_id: str,
        project_dir: str,
        params: Optional[Dict[str, Any]] = None,
    ):
        self._spec = EffectSpec(
            effect_id=effect_id,
            name=name,
            composition_id=composition_id,
            project_dir=project_dir,
            description="Registered at runtime",
        )
        self.params = {
            key: ParamDef(default=value, description="")
            for key, value in (params or {}).items()
        }

    def spec(self) -> EffectSpec:
        return self._spec

    def build_props(self, raw: Dict[str, Any], common: Dict[str, Any]) -> Dict[str, Any]:
        props = super().build_props(raw, common)
        for key, value in raw.items():
            if key not in props:
                props[key] = value
        return props


# Global registry instance
registry = EffectRegistry()
