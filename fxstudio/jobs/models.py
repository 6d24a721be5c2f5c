"""Job record data model for async rendering."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobState(str, Enum):
    PENDING = "pending"
    RENDERING = "rendering"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED)


class JobKind(str, Enum):
    SINGLE = "single"
    COMPOSITE = "composite"


# Allowed state machine edges. pending -> failed closes jobs that are
# cancelled or time out before their render starts.
ALLOWED_TRANSITIONS = {
    JobState.PENDING: {JobState.RENDERING, JobState.FAILED},
    JobState.RENDERING: {JobState.COMPLETED, JobState.FAILED},
    JobState.COMPLETED: set(),
    JobState.FAILED: set(),
}


class JobRecord(BaseModel):
    """Tracks the lifecycle of one render job."""
    id: str
    kind: JobKind
    effect_id: str
    effect_name: str = ""
    state: JobState = JobState.PENDING
    progress: int = 0
    input_params: Dict[str, Any] = Field(default_factory=dict)
    output_artifact: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class MergeMode(str, Enum):
    SEQUENCE = "sequence"
    OVERLAY = "overlay"
    TRANSITION = "transition"


# xfade transition kinds accepted by ffmpeg
XFADE_TRANSITIONS = frozenset({
    "fade", "fadeblack", "fadewhite", "fadegrays", "dissolve", "pixelize",
    "wipeleft", "wiperight", "wipeup", "wipedown",
    "slideleft", "slideright", "slideup", "slidedown",
    "smoothleft", "smoothright", "smoothup", "smoothdown",
    "circlecrop", "rectcrop", "circleopen", "circleclose",
    "vertopen", "vertclose", "horzopen", "horzclose",
    "diagtl", "diagtr", "diagbl", "diagbr",
    "hlslice", "hrslice", "vuslice", "vdslice",
    "radial", "zoomin", "distance", "squeezeh", "squeezev",
})


class MergeConfig(BaseModel):
    """How the clips of a composite job are combined into one video."""
    mode: MergeMode = MergeMode.SEQUENCE
    transition: str = "fade"
    transition_duration: float = 0.5
    width: int = Field(default=720, gt=0)
    height: int = Field(default=1280, gt=0)
    fps: int = Field(default=24, gt=0)
    overlay_opacity: float = Field(default=0.5, gt=0, le=1)

    @model_validator(mode="after")
    def check_transition(self) -> "MergeConfig":
        # transition fields only matter when clips are joined with xfade
        if self.mode != MergeMode.TRANSITION:
            return self
        if self.transition not in XFADE_TRANSITIONS:
            raise ValueError(f"unknown transition '{self.transition}'")
        if self.transition_duration <= 0:
            raise ValueError("transition_duration must be greater than 0")
        return self
