"""Thin subprocess helpers for external tools (galleon, jboss-cli, docker)."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Mapping, Optional, Sequence

from common.logging_utils import Timer, extra_context, is_debug_enabled, redact

logger = logging.getLogger(__name__)


def exec_command(cmd: Sequence[str], cwd: Optional[Path] = None,
                 env: Optional[Mapping[str, str]] = None,
                 input_text: Optional[str] = None) -> int:
    """Run ``cmd`` to completion, streaming its output, and return the exit code.

    Raises:
        FileNotFoundError: the executable does not exist.
    """
    full_env = os.environ.copy()
    if env:
        full_env.update(env)
    logger.info("Running: %s", " ".join(cmd))
    with Timer() as t:
        result = subprocess.run(  # noqa: S603
            list(cmd),
            cwd=str(cwd) if cwd is not None else None,
            env=full_env,
            input=input_text,
            text=True,
            check=False,
        )
    if is_debug_enabled(logger):
        logger.debug("Command finished", extra=extra_context(
            event="exec", component="exec_util", action="run",
            target=cmd[0], outcome=result.returncode, duration_ms=t.duration_ms(),
            env=redact(dict(env)) if env else None
        ))
    return result.returncode


def exec_silent_with_timeout(cmd: Sequence[str], timeout: float) -> bool:
    """Run ``cmd`` discarding output; True when it exits 0 within ``timeout`` seconds.

    Raises:
        FileNotFoundError: the executable does not exist.
        subprocess.TimeoutExpired: the command outlived ``timeout``.
    """
    result = subprocess.run(  # noqa: S603
        list(cmd),
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        timeout=timeout,
        check=False,
    )
    return result.returncode == 0
