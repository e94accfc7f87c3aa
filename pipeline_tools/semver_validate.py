"""
Script: pipeline_tools/semver_validate.py
What: Checks one version string against SemVer 2.0.
Doing: Validates `SEMVER_VERSION`, writes `valid=true|false`, and fails the step when invalid.
Why: Catches hand-typed release versions before they are pushed as tags.
Goal: Stop the workflow on an invalid version.
"""

from __future__ import annotations

from pipeline_tools.common import require_env, write_github_outputs
from pipeline_tools.semver import SemverParseError, validate


def main() -> None:
    version = require_env("SEMVER_VERSION")
    is_valid = validate(version)
    write_github_outputs({"valid": "true" if is_valid else "false"})
    if not is_valid:
        raise SemverParseError(f"Invalid SemVer: {version}")
    print(f"Valid SemVer: {version}")


if __name__ == "__main__":
    main()
