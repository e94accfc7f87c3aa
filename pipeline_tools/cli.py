from __future__ import annotations

import argparse
import importlib
import sys
from collections.abc import Callable, Mapping

from pipeline_tools.common import PipelineToolError


# Command name -> module that provides its `main()`.
COMMAND_MODULES = {
    "aws-oidc-login": "pipeline_tools.aws_oidc_login",
    "aws-ecr-push": "pipeline_tools.aws_ecr_push",
    "semver-get-full": "pipeline_tools.semver_get_full",
    "semver-get-build": "pipeline_tools.semver_get_build",
    "semver-detect-version": "pipeline_tools.semver_detect_version",
    "semver-validate": "pipeline_tools.semver_validate",
    "semver-parse": "pipeline_tools.semver_parse",
}


def command_map() -> dict[str, Callable[[], None]]:
    """Import every command module and return `{command name: main}`."""
    return {
        name: importlib.import_module(module_name).main
        for name, module_name in COMMAND_MODULES.items()
    }


def command_summary(entry: Callable[[], None]) -> str:
    """
    One-line help for a command, taken from the `What:` line of its module docstring.

    Entries that do not come from a registered command module get an empty string.
    """
    module_name = getattr(entry, "__module__", "")
    if module_name not in COMMAND_MODULES.values():
        return ""
    module = sys.modules.get(module_name)
    for line in (getattr(module, "__doc__", None) or "").splitlines():
        if line.startswith("What:"):
            return line[len("What:") :].strip()
    return ""


def build_parser(commands: Mapping[str, Callable[[], None]]) -> argparse.ArgumentParser:
    """Build a parser with one subcommand per registered command."""
    parser = argparse.ArgumentParser(
        prog="pipeline-tools",
        description="Run one pipeline step. Settings are read from environment variables.",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="command", required=True)
    for name in sorted(commands):
        subparsers.add_parser(name, help=command_summary(commands[name]))
    return parser


def run_command(command: str, commands: Mapping[str, Callable[[], None]]) -> None:
    """
    Run one registered command.

    Tool errors are re-raised with the command name in front, so a failing
    step says which helper stopped it.
    """
    try:
        commands[command]()
    except PipelineToolError as exc:
        raise PipelineToolError(f"{command}: {exc}") from exc


def main(argv: list[str] | None = None) -> None:
    commands = command_map()
    args = build_parser(commands).parse_args(argv)

    try:
        run_command(args.command, commands)
    except PipelineToolError as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


if __name__ == "__main__":
    main()
