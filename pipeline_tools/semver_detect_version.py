"""
Script: pipeline_tools/semver_detect_version.py
What: Reads the declared project version from `pom.xml` or `package.json`.
Doing: Runs the version detector on `SRC_DIR` and writes the result as a step output.
Why: Lets workflows reuse the manifest version without parsing files in YAML.
Goal: Provide `version` for later steps.
"""

from __future__ import annotations

from pipeline_tools.common import optional_env, write_github_outputs
from pipeline_tools.version_detect import detect_version


def main() -> None:
    version = detect_version(optional_env("SRC_DIR", "."))
    write_github_outputs({"version": version})


if __name__ == "__main__":
    main()
