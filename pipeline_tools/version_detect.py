"""
Script: pipeline_tools/version_detect.py
What: Finds the project version declared in a source tree's manifest.
Doing: Tries `pom.xml` (`/project/version`) and then `package.json` (`$.version`), first hit wins.
Why: Builds should reuse the version the project already declares instead of a second copy.
Goal: Return one raw version string or fail with a clear "cannot detect" error.
"""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Sequence

from pipeline_tools.common import MissingFieldError, PipelineToolError


class SourceUnavailableError(PipelineToolError):
    """Raised by a version source when its manifest file does not exist."""


def _local_name(tag: str) -> str:
    # ElementTree spells namespaced tags as `{uri}name`.
    return tag.rsplit("}", 1)[-1]


class VersionSource:
    """
    One way of reading a version out of a source tree.

    Subclasses set `manifest_name` and implement `extract()`. `find_version()` raises
    `SourceUnavailableError` when the manifest is missing and returns `None`
    when it exists but carries no usable version.
    """

    manifest_name = ""

    def find_version(self, src_dir: Path) -> str | None:
        manifest_path = Path(src_dir) / self.manifest_name
        if not manifest_path.is_file():
            raise SourceUnavailableError(f"Cannot find a {self.manifest_name}")
        # Raw bytes: the parser decides the encoding (XML declaration, BOM).
        return self.extract(manifest_path.read_bytes())

    def extract(self, contents: bytes) -> str | None:
        raise NotImplementedError


class PomXmlVersionSource(VersionSource):
    """Maven `pom.xml`: text of the `version` element directly under `project`."""

    manifest_name = "pom.xml"

    def extract(self, contents: bytes) -> str | None:
        try:
            root = ET.fromstring(contents)
        except (ET.ParseError, LookupError, ValueError) as exc:
            print(f"Cannot parse {self.manifest_name}: {exc}")
            return None

        # Maven poms declare a default namespace, so compare local names only.
        if _local_name(root.tag) != "project":
            return None
        for child in root:
            if _local_name(child.tag) == "version":
                return (child.text or "").strip() or None
        return None


class PackageJsonVersionSource(VersionSource):
    """npm `package.json`: the top-level `version` string."""

    manifest_name = "package.json"

    def extract(self, contents: bytes) -> str | None:
        try:
            document = json.loads(contents.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            print(f"Cannot parse {self.manifest_name}: {exc}")
            return None

        if not isinstance(document, dict):
            return None
        version = document.get("version")
        if not isinstance(version, str):
            return None
        return version.strip() or None


DEFAULT_SOURCES: tuple[VersionSource, ...] = (
    PomXmlVersionSource(),
    PackageJsonVersionSource(),
)


def detect_version(src_dir: str | Path, sources: Sequence[VersionSource] = DEFAULT_SOURCES) -> str:
    """
    Return the version from the first source that yields one.

    Sources are tried in order. A missing manifest is not an error by itself;
    the next source is tried. If nothing matches, `MissingFieldError` is raised.
    """
    src_path = Path(src_dir)
    for source in sources:
        try:
            version = source.find_version(src_path)
        except SourceUnavailableError as exc:
            print(str(exc))
            continue
        if version:
            print(f"Detected version {version} from {source.manifest_name}")
            return version

    tried = ", ".join(source.manifest_name for source in sources)
    raise MissingFieldError(f"Cannot detect version in {src_path} (tried: {tried})")
