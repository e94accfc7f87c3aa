"""
Script: tests/test_cli.py
What: Tests for the shared `pipeline_tools` command dispatcher.
Doing: Checks command-map entries, parser behavior, and command-run paths.
Why: Makes sure workflow command names still point to the right modules.
Goal: Protect the main command entry surface used by workflow steps.
"""

from __future__ import annotations

import contextlib
import io
import unittest
from unittest import mock

from pipeline_tools.cli import build_parser, command_map, command_summary, main, run_command
from pipeline_tools.common import PipelineToolError


class CliTests(unittest.TestCase):
    def test_command_map_contains_expected_entries(self) -> None:
        commands = command_map()
        expected = {
            "aws-oidc-login",
            "aws-ecr-push",
            "semver-get-full",
            "semver-get-build",
            "semver-detect-version",
            "semver-validate",
            "semver-parse",
        }
        self.assertEqual(expected, set(commands.keys()))

    def test_parser_accepts_known_command(self) -> None:
        parser = build_parser({"demo-command": lambda: None})
        args = parser.parse_args(["demo-command"])
        self.assertEqual(args.command, "demo-command")

    def test_run_command_calls_target_function(self) -> None:
        called = {"value": False}

        def _target() -> None:
            called["value"] = True

        run_command("demo", {"demo": _target})
        self.assertTrue(called["value"])

    def test_main_turns_tool_errors_into_exit_code(self) -> None:
        def _fail() -> None:
            raise PipelineToolError("Cannot detect version")

        stderr = io.StringIO()
        with mock.patch("pipeline_tools.cli.command_map", return_value={"demo": _fail}), contextlib.redirect_stderr(
            stderr
        ):
            with self.assertRaises(SystemExit) as ctx:
                main(["demo"])
        self.assertEqual(ctx.exception.code, 1)
        self.assertIn("Cannot detect version", stderr.getvalue())
        self.assertIn("demo: Cannot detect version", stderr.getvalue())

    def test_run_command_names_the_failing_command(self) -> None:
        def _fail() -> None:
            raise PipelineToolError("Missing required environment variable: IMAGE_TAG")

        with self.assertRaises(PipelineToolError) as ctx:
            run_command("aws-ecr-push", {"aws-ecr-push": _fail})
        self.assertEqual(str(ctx.exception), "aws-ecr-push: Missing required environment variable: IMAGE_TAG")

    def test_command_summary_reads_module_docstring(self) -> None:
        summary = command_summary(command_map()["semver-validate"])
        self.assertEqual(summary, "Checks one version string against SemVer 2.0.")

    def test_command_summary_without_docstring(self) -> None:
        self.assertEqual(command_summary(lambda: None), "")

    def test_parser_rejects_unknown_command(self) -> None:
        parser = build_parser({"demo-command": lambda: None})
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                parser.parse_args(["other-command"])


if __name__ == "__main__":
    unittest.main()
