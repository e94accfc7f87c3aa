"""
Script: pipeline_tools/build_id.py
What: Builds the build-metadata part of a version string.
Doing: Joins a UTC timestamp and the short git commit hash with `-`, each part optional.
Why: Gives every pipeline run a traceable version suffix without manual input.
Goal: Produce values like `20260227T101500-1a2b3c4`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable

from pipeline_tools.common import run_cmd


BUILD_TIMESTAMP_FORMAT = "%Y%m%dT%H%M%S"


def format_build_timestamp(moment: datetime) -> str:
    """Format `moment` in UTC as `YYYYMMDDTHHMMSS`. Naive values are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime(BUILD_TIMESTAMP_FORMAT)


def compose_build_id(parts: Iterable[str]) -> str:
    """Join the non-empty parts with `-`, in the order given."""
    return "-".join(part.strip() for part in parts if part and part.strip())


def git_short_commit(src_dir: Path) -> str:
    """Return `git rev-parse --short HEAD` for the checkout at `src_dir`."""
    return run_cmd(["git", "rev-parse", "--short", "HEAD"], cwd=str(src_dir)).strip()


def get_build(
    src_dir: str | Path,
    *,
    no_ts: bool = False,
    no_commit: bool = False,
    now: datetime | None = None,
    commit_lookup: Callable[[Path], str] = git_short_commit,
) -> str:
    """
    Return the build identifier for `src_dir`.

    Order is always timestamp first, commit second. With both parts disabled
    the result is an empty string and git is not called.
    """
    if no_ts and no_commit:
        return ""

    parts: list[str] = []
    if not no_ts:
        parts.append(format_build_timestamp(now or datetime.now(timezone.utc)))
    if not no_commit:
        parts.append(commit_lookup(Path(src_dir)))
    return compose_build_id(parts)
