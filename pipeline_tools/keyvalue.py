"""
Script: pipeline_tools/keyvalue.py
What: Parses shell-style `KEY=VALUE` text into a dictionary.
Doing: Scans lines, matches one named-group pattern, and keeps the last value per key.
Why: Credentials files written by shell scripts are hand-assembled text, not JSON.
Goal: Turn a credentials file into values other helpers can read by name.
"""

from __future__ import annotations

import re
from typing import Mapping

from pipeline_tools.common import MissingFieldError


# Groups:
# - prefix: optional leading words like `export ` (matched lazily so a quoted
#   value containing ` x=y` is not mistaken for the key)
# - key: the variable name
# - value: everything after `=`, without the optional surrounding double quotes
ASSIGNMENT_RE = re.compile(
    r'(?P<prefix>.*?\s+)?(?P<key>[a-zA-Z0-9_]+)\s*=\s*"?(?P<value>[^"]*)"?'
)


def parse_key_values(text: str) -> dict[str, str]:
    """
    Return `{key: value}` for every assignment line in `text`.

    Best effort: lines that do not look like an assignment are skipped and no
    error is raised. Later duplicate keys overwrite earlier ones.
    """
    values: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        match = ASSIGNMENT_RE.fullmatch(line)
        if match:
            values[match.group("key")] = match.group("value")
    return values


def require_key(values: Mapping[str, str], key: str) -> str:
    """Return `values[key]` or raise `MissingFieldError` naming the key."""
    if key not in values:
        raise MissingFieldError(f"Cannot find '{key}'")
    return values[key]
