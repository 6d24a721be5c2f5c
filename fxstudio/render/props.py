"""Scoped serialisation of renderer props."""

import json
import logging
import os
from contextlib import contextmanager
from typing import Any, Dict, Iterator

logger = logging.getLogger(__name__)


def props_path(temp_dir: str, job_id: str) -> str:
    return os.path.join(temp_dir, f"render-props-{job_id}.json")


@contextmanager
def props_file(temp_dir: str, job_id: str, props: Dict[str, Any]) -> Iterator[str]:
    """Write ``props`` to a JSON file for the renderer and always remove it.

    A file avoids shell escaping and command line length limits. Removal
    failures are logged and never replace the error that ended the block.
    """
    os.makedirs(temp_dir, exist_ok=True)
    path = props_path(temp_dir, job_id)
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(props, fh, ensure_ascii=False, indent=2)
        yield path
    finally:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not remove props file %s: %s", path, exc)
