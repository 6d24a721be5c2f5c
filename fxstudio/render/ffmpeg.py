"""Async helpers for running external processes (renderer, ffmpeg, ffprobe)."""

import asyncio
import contextlib
import logging
import os
import time
from typing import List, Optional

from fxstudio.exceptions import NonZeroExitError, SpawnFailureError

logger = logging.getLogger(__name__)

STDERR_TAIL_CHARS = 2000


async def terminate_process(process: asyncio.subprocess.Process, grace: float = 5.0) -> None:
    """Terminate a child, escalating to kill after ``grace`` seconds."""
    if process.returncode is not None:
        return
    with contextlib.suppress(ProcessLookupError):
        process.terminate()
    try:
        await asyncio.wait_for(process.wait(), timeout=max(0.1, grace))
    except asyncio.TimeoutError:
        logger.error("Process did not terminate in %.1fs; killing PID=%s", grace, process.pid)
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()


def tail(text: str, limit: int = STDERR_TAIL_CHARS) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return "..." + text[-limit:]


async def run_process(
    args: List[str],
    *,
    timeout: Optional[float] = None,
    kill_grace: float = 5.0,
) -> str:
    """Run a command to completion and return its stdout.

    Raises:
        SpawnFailureError: the executable could not be started.
        NonZeroExitError: the command exited with a non-zero code.
        asyncio.TimeoutError: ``timeout`` elapsed (the child is terminated).
    """
    base = os.path.basename(str(args[0])) if args else "?"
    cmd_str = " ".join(map(str, args))
    logger.debug("Running command: %s", cmd_str)

    t0 = time.monotonic()
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        raise SpawnFailureError(base, str(exc)) from exc

    try:
        if timeout is not None and timeout > 0:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        else:
            stdout, stderr = await process.communicate()
    except asyncio.TimeoutError:
        logger.error("%s timed out after %.1fs (PID=%s)", base, timeout, process.pid)
        await terminate_process(process, kill_grace)
        raise
    except asyncio.CancelledError:
        logger.warning("Cancelled while running %s (PID=%s); terminating", base, process.pid)
        await terminate_process(process, kill_grace)
        raise

    stdout_str = stdout.decode(errors="ignore")
    stderr_str = stderr.decode(errors="ignore")
    rc = process.returncode
    logger.debug("%s finished rc=%s in %.2fs", base, rc, time.monotonic() - t0)

    if rc != 0:
        logger.error("%s failed rc=%s. Command: %s", base, rc, cmd_str)
        if stderr_str:
            logger.error("stderr:\n%s", tail(stderr_str))
        raise NonZeroExitError(rc, base, tail(stderr_str, 500))

    return stdout_str
