"""Subprocess helpers treating every external tool call as request/response."""

import json
import subprocess
from pathlib import Path
from typing import Any, Callable, List, Optional, TypeVar, Union

from review_keeper.exceptions import MalformedOutputError, ToolInvocationError
from review_keeper.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def run_command(
    cmd: List[str],
    *,
    cwd: Optional[Union[str, Path]] = None,
    timeout: Optional[float] = None,
) -> str:
    """
    Run a command and return its combined stdout/stderr.

    Args:
        cmd: Command and arguments
        cwd: Working directory
        timeout: Timeout in seconds (None waits forever)

    Returns:
        Combined output as text

    Raises:
        ToolInvocationError: If the command cannot start, times out or exits non-zero
    """
    logger.debug(f"Running {' '.join(cmd)} in {cwd or '.'}")
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        raise ToolInvocationError(cmd, message=f"executable not found: {e.filename or cmd[0]}") from e
    except subprocess.TimeoutExpired as e:
        raise ToolInvocationError(cmd, message=f"timed out after {timeout}s") from e
    except OSError as e:
        raise ToolInvocationError(cmd, message=str(e)) from e

    if result.returncode != 0:
        raise ToolInvocationError(cmd, returncode=result.returncode, output=result.stdout or "")

    return result.stdout or ""


def clean_output_json(output: str) -> str:
    """Strip trailing whitespace and anything before the first JSON object.

    Raises:
        MalformedOutputError: If no '{' is present
    """
    output = output.rstrip(" \t\n\r")
    idx = output.find("{")
    if idx == -1:
        raise MalformedOutputError("command output", f"no JSON object found in data: {output!r}")
    return output[idx:]


def run_json(
    cmd: List[str],
    *,
    cwd: Optional[Union[str, Path]] = None,
    timeout: Optional[float] = None,
) -> Any:
    """Run a command and decode the JSON object embedded in its output."""
    output = run_command(cmd, cwd=cwd, timeout=timeout)
    payload = clean_output_json(output)
    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        raise MalformedOutputError(" ".join(cmd), f"invalid JSON: {e}") from e


def best_effort(func: Callable[..., T], *args: Any, default: Optional[T] = None, **kwargs: Any) -> Optional[T]:
    """Call func, returning default instead of raising a review-keeper error."""
    try:
        return func(*args, **kwargs)
    except (ToolInvocationError, MalformedOutputError) as e:
        logger.debug(f"{getattr(func, '__name__', func)} failed, using default: {e}")
        return default
