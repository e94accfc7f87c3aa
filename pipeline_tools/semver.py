"""
Script: pipeline_tools/semver.py
What: Parses, validates, and formats Semantic Versioning 2.0 strings.
Doing: Matches the semver.org reference pattern with named groups and builds `Version` records.
Why: Version strings end up in image tags, so a bad one should fail early.
Goal: One place that decides whether a version string is valid SemVer.

Grammar: `MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]` (https://semver.org).
"""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass

from pipeline_tools.common import PipelineToolError


class SemverParseError(PipelineToolError):
    """Raised when a string is not valid SemVer 2.0."""


# Reference pattern from semver.org, with `\d` spelled `[0-9]` so only ASCII
# digits are accepted.
SEMVER_RE = re.compile(
    r"(?P<major>0|[1-9][0-9]*)"
    r"\.(?P<minor>0|[1-9][0-9]*)"
    r"\.(?P<patch>0|[1-9][0-9]*)"
    r"(?:-(?P<prerelease>"
    r"(?:0|[1-9][0-9]*|[0-9]*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9][0-9]*|[0-9]*[a-zA-Z-][0-9a-zA-Z-]*))*"
    r"))?"
    r"(?:\+(?P<buildmetadata>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?"
)


@dataclass(frozen=True)
class Version:
    """One parsed SemVer value. Empty strings mean "no prerelease/build"."""

    major: int
    minor: int
    patch: int
    prerelease: str = ""
    build: str = ""

    def __str__(self) -> str:
        return build(self.major, self.minor, self.patch, self.prerelease, self.build)

    def to_json(self) -> str:
        """Return the five fields as a JSON object."""
        return json.dumps(asdict(self))


def _to_int(value: str, component: str, text: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise SemverParseError(f"Cannot extract {component} version from {text}") from exc


def parse(text: str) -> Version:
    """Parse `text` into a `Version`, or raise `SemverParseError`."""
    match = SEMVER_RE.fullmatch(text)
    if not match:
        raise SemverParseError(f"Cannot parse SemVer in {text}")

    return Version(
        major=_to_int(match.group("major"), "Major", text),
        minor=_to_int(match.group("minor"), "Minor", text),
        patch=_to_int(match.group("patch"), "Patch", text),
        prerelease=match.group("prerelease") or "",
        build=match.group("buildmetadata") or "",
    )


def validate(text: str) -> bool:
    """True when `text` parses as SemVer. Prints the reason when it does not."""
    try:
        parse(text)
    except SemverParseError as exc:
        print(f"Version not valid: {text} ({exc})")
        return False
    return True


def build(major: int, minor: int, patch: int, prerelease: str = "", build: str = "") -> str:
    """
    Format version parts as `MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]`.

    Inputs are not validated; pass the result to `validate` if they came from
    somewhere untrusted.
    """
    text = f"{major}.{minor}.{patch}"
    if prerelease:
        text += f"-{prerelease}"
    if build:
        text += f"+{build}"
    return text


def concat(version: str, build_id: str) -> str:
    """
    Append `+build_id` to `version`.

    There is no check for an existing build segment: `concat("1.0.0+a", "b")`
    returns `1.0.0+a+b`, which `validate` rejects.
    """
    return f"{version}+{build_id}"
