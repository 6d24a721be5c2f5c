"""Stage request assets (background files) for the renderer."""

import logging
import os
import shutil
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = (".mp4", ".webm", ".mov")


def stage_background(
    props: Dict[str, Any],
    background_file: Optional[str],
    project_path: str,
    upload_dir: str,
) -> None:
    """Point the props at ``background_file`` and copy it into the
    effect's ``public`` directory where the renderer resolves static files.
    """
    if not background_file:
        return

    # Only a bare file name inside upload_dir is accepted
    name = os.path.basename(background_file)
    props["backgroundSource"] = name
    if os.path.splitext(name)[1].lower() in VIDEO_EXTENSIONS:
        props["backgroundType"] = "video"
        props["backgroundVideoLoop"] = True
        props["backgroundVideoMuted"] = True
    else:
        props["backgroundType"] = "image"

    source = os.path.join(upload_dir, name)
    if not os.path.exists(source):
        logger.warning("Background file %s not found in %s", name, upload_dir)
        return

    target_dir = os.path.join(project_path, "public")
    os.makedirs(target_dir, exist_ok=True)
    shutil.copyfile(source, os.path.join(target_dir, name))
    logger.debug("Staged background %s into %s", name, target_dir)


def upload_path(upload_dir: str, background_file: Optional[str]) -> Optional[str]:
    if not background_file:
        return None
    return os.path.join(upload_dir, os.path.basename(background_file))
