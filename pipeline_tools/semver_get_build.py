"""
Script: pipeline_tools/semver_get_build.py
What: Computes the build-metadata suffix for the current checkout.
Doing: Reads skip flags from env, calls `get_build`, and writes the result as a step output.
Why: Some workflows tag images with the build id alone.
Goal: Provide `build` for later steps.

Environment:
- SRC_DIR: git checkout to read the commit from (default: current directory)
- NO_TS: `true` to leave out the UTC timestamp
- NO_COMMIT: `true` to leave out the short commit hash
"""

from __future__ import annotations

from pipeline_tools.build_id import get_build
from pipeline_tools.common import optional_bool_env, optional_env, write_github_outputs


def main() -> None:
    build = get_build(
        optional_env("SRC_DIR", "."),
        no_ts=optional_bool_env("NO_TS"),
        no_commit=optional_bool_env("NO_COMMIT"),
    )

    write_github_outputs({"build": build})
    print(f"Build id: {build}")


if __name__ == "__main__":
    main()
