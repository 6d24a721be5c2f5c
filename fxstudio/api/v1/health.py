"""Health check endpoint."""

import platform
import shlex
import shutil
import sys

from fastapi import APIRouter

from fxstudio.config import settings

router = APIRouter()

# Set by main.py during lifespan
_store = None


def set_store(store):
    global _store
    _store = store


def _available(command: str) -> bool:
    parts = shlex.split(command)
    return bool(parts) and shutil.which(parts[0]) is not None


@router.get("/health")
async def health_check():
    """Service health, external tool availability and job counts."""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "renderer_available": _available(settings.renderer_command),
        "ffmpeg_available": _available(settings.ffmpeg_path),
        "ffprobe_available": _available(settings.ffprobe_path),
        "jobs": _store.counts() if _store is not None else None,
        "python_version": sys.version,
        "platform": platform.platform(),
    }
