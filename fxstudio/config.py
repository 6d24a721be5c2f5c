"""Application configuration via environment variables."""

import os
import tempfile
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    app_name: str = "fxstudio"
    app_version: str = "0.1.0"
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Storage
    output_dir: str = "outputs"
    temp_dir: str = os.path.join(tempfile.gettempdir(), "fxstudio")
    upload_dir: str = "uploads"

    # Effect renderer (external process)
    effects_root: str = "effects"
    renderer_command: str = "npx remotion render"
    renderer_entry: str = "src/index.ts"
    renderer_codec: str = "h264"
    renderer_concurrency: int = 1
    renderer_extra_args: str = "--chromium-flags=--headless=new"
    renderer_browser_executable: Optional[str] = None
    renderer_kill_grace_seconds: float = 5.0
    render_max_frames: int = 0  # 0 = no cap

    # Merge stage
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    merge_crf: int = 23
    merge_preset: str = "medium"

    # Job processing
    job_retention_minutes: int = 30
    sweep_interval_minutes: int = 30
    job_timeout_seconds: float = 0  # 0 = no timeout
    max_concurrent_jobs: int = 0  # 0 = unlimited
    composite_default_duration: float = 5

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
