"""
Script: pipeline_tools/semver_get_full.py
What: Produces the full `<version>+<build>` string for a source tree.
Doing: Fills in a missing version from the manifest and a missing build id from time/git, then validates.
Why: Image tags and release names need one consistent, valid SemVer value.
Goal: Provide `version` for later steps.

Environment:
- SRC_DIR: source tree to inspect (default: current directory)
- VERSION: `MAJOR.MINOR.PATCH[-PRERELEASE]` to use instead of detecting it
- BUILD: build metadata to use instead of timestamp + commit
"""

from __future__ import annotations

from pathlib import Path

from pipeline_tools.build_id import get_build
from pipeline_tools.common import optional_env, write_github_outputs
from pipeline_tools.semver import SemverParseError, concat, validate
from pipeline_tools.version_detect import detect_version


def get_full(src_dir: str | Path, version: str = "", build: str = "") -> str:
    """Return the validated full version for `src_dir`."""
    if not build:
        build = get_build(src_dir)
    if not version:
        version = detect_version(src_dir)

    full_version = concat(version, build)
    if not validate(full_version):
        raise SemverParseError(f"Invalid SemVer: {full_version}")
    return full_version


def main() -> None:
    src_dir = optional_env("SRC_DIR", ".")
    full_version = get_full(
        src_dir,
        version=optional_env("VERSION").strip(),
        build=optional_env("BUILD").strip(),
    )

    write_github_outputs({"version": full_version})
    print(f"Full version: {full_version}")


if __name__ == "__main__":
    main()
