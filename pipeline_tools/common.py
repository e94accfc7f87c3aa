"""
Script: pipeline_tools/common.py
What: Shared helper functions used by all `pipeline_tools` modules.
Doing: Wraps env reads, command execution, error types, and step output writes.
Why: Avoids duplicated helper code.
Goal: Keep behavior consistent across all helper modules.
"""

from __future__ import annotations

import os
import subprocess
from typing import Mapping, Sequence


class PipelineToolError(RuntimeError):
    """Raised when a workflow helper script hits a known error condition."""


class MissingFieldError(PipelineToolError):
    """Raised when a required value (key, field, or version) is absent."""


def require_env(name: str) -> str:
    """Return a required environment variable or raise a clear error."""
    value = os.environ.get(name)
    if value is None or value == "":
        raise PipelineToolError(f"Missing required environment variable: {name}")
    return value


def optional_env(name: str, default: str = "") -> str:
    """Return an environment variable with a fallback default."""
    return os.environ.get(name, default)


def optional_int_env(name: str, default: int) -> int:
    """Return an integer environment variable, or `default` when unset/empty."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise PipelineToolError(f"Environment variable {name} must be an integer, got {raw!r}") from exc


def optional_bool_env(name: str, default: bool = False) -> bool:
    """Read `true`/`false` style flags; anything else than `true` is false."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    return raw.lower() == "true"


def run_cmd(
    args: Sequence[str],
    *,
    capture_output: bool = True,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
    input_text: str | None = None,
) -> str:
    """
    Run a command and return stdout, raising a readable error on failure.

    `input_text` is written to the command's stdin. Use it for secrets so they
    never show up in the process argument list.
    """
    try:
        result = subprocess.run(
            list(args),
            check=True,
            text=True,
            capture_output=capture_output,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            input=input_text,
        )
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        stdout = (exc.stdout or "").strip()
        details = stderr or stdout or str(exc)
        raise PipelineToolError(f"Command failed: {' '.join(args)}\n{details}") from exc
    except FileNotFoundError as exc:
        raise PipelineToolError(f"Command not found: {args[0]}") from exc

    if not capture_output:
        return ""
    return result.stdout


def mask_github_values(values: Sequence[str]) -> None:
    """
    Ask GitHub Actions to redact values from all later log lines.

    Must run before the values are written anywhere a log could show them.
    """
    for value in values:
        if value:
            print(f"::add-mask::{value}")


def write_github_outputs(values: Mapping[str, str]) -> None:
    """
    Write step outputs for GitHub Actions.

    GitHub provides a file path in `GITHUB_OUTPUT`; writing `name=value` lines
    there makes that value available to later steps in the same job.
    """
    output_file = require_env("GITHUB_OUTPUT")
    with open(output_file, "a", encoding="utf-8") as handle:
        for key, value in values.items():
            handle.write(f"{key}={value}\n")
