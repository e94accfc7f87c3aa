"""
Script: pipeline_tools/semver_parse.py
What: Splits one version string into its SemVer parts.
Doing: Parses `SEMVER_VERSION` and writes major/minor/patch/prerelease/build outputs.
Why: Workflows sometimes tag images with `MAJOR` or `MAJOR.MINOR` only.
Goal: Provide each version part as its own step output.
"""

from __future__ import annotations

from pipeline_tools.common import require_env, write_github_outputs
from pipeline_tools.semver import parse


def main() -> None:
    version = parse(require_env("SEMVER_VERSION"))
    write_github_outputs(
        {
            "major": str(version.major),
            "minor": str(version.minor),
            "patch": str(version.patch),
            "prerelease": version.prerelease,
            "build": version.build,
            "json": version.to_json(),
        }
    )
    print(version.to_json())


if __name__ == "__main__":
    main()
