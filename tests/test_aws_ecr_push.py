"""
Script: tests/test_aws_ecr_push.py
What: Tests Docker build/push helpers in `pipeline_tools/aws_ecr_push.py`.
Doing: Checks registry/tag parsing, digest extraction, and the docker call sequence with a fake `run_cmd`.
Why: The push step must log in to the right registry and never put the password in argv.
Goal: Keep image publication predictable.
"""

from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from pipeline_tools.aws_oidc_login import AwsSecrets
from pipeline_tools.aws_ecr_push import (
    build_and_push_oidc,
    build_dockerfile,
    extract_push_digest,
    image_name_without_tag,
    main,
    publish_container,
    publish_oidc,
    registry_host,
)
from pipeline_tools.common import PipelineToolError


ECR_TAG = "123456789012.dkr.ecr.us-east-1.amazonaws.com/app:1.2.3"
DIGEST = "sha256:" + "a" * 64
PUSH_OUTPUT = (
    "The push refers to repository [123456789012.dkr.ecr.us-east-1.amazonaws.com/app]\n"
    "5f70bf18a086: Pushed\n"
    f"1.2.3: digest: {DIGEST} size: 528\n"
)


def _secrets(ecr_secret: str) -> AwsSecrets:
    return AwsSecrets(duration_sec=900, from_ts_utc=0, until_ts_utc=900, ecr_secret=ecr_secret)


class ImageRefTests(unittest.TestCase):
    def test_registry_host(self) -> None:
        self.assertEqual(registry_host(ECR_TAG), "123456789012.dkr.ecr.us-east-1.amazonaws.com")

    def test_registry_host_requires_host(self) -> None:
        with self.assertRaises(PipelineToolError):
            registry_host("app:1.2.3")

    def test_image_name_without_tag(self) -> None:
        self.assertEqual(
            image_name_without_tag(ECR_TAG),
            "123456789012.dkr.ecr.us-east-1.amazonaws.com/app",
        )

    def test_image_name_keeps_registry_port(self) -> None:
        self.assertEqual(image_name_without_tag("localhost:5000/app"), "localhost:5000/app")

    def test_extract_push_digest(self) -> None:
        self.assertEqual(extract_push_digest(PUSH_OUTPUT), DIGEST)
        self.assertEqual(extract_push_digest("nothing here"), "")


class PublishTests(unittest.TestCase):
    def test_publish_container_logs_in_with_stdin_and_pushes(self) -> None:
        with mock.patch("pipeline_tools.aws_ecr_push.run_cmd", side_effect=["Login Succeeded\n", PUSH_OUTPUT]) as run_cmd, mock.patch(
            "builtins.print"
        ):
            ref = publish_container(ECR_TAG, "ecr-password")

        self.assertEqual(ref, f"123456789012.dkr.ecr.us-east-1.amazonaws.com/app@{DIGEST}")
        login_call, push_call = run_cmd.call_args_list
        self.assertEqual(
            login_call.args[0],
            [
                "docker",
                "login",
                "--username",
                "AWS",
                "--password-stdin",
                "123456789012.dkr.ecr.us-east-1.amazonaws.com",
            ],
        )
        self.assertEqual(login_call.kwargs["input_text"], "ecr-password")
        self.assertEqual(push_call.args[0], ["docker", "push", ECR_TAG])

    def test_publish_container_falls_back_to_tag(self) -> None:
        with mock.patch("pipeline_tools.aws_ecr_push.run_cmd", side_effect=["", "pushed\n"]), mock.patch("builtins.print"):
            self.assertEqual(publish_container(ECR_TAG, "pw"), ECR_TAG)

    def test_publish_oidc_requires_ecr_secret(self) -> None:
        with mock.patch("pipeline_tools.aws_ecr_push.login_oidc", return_value=_secrets("")), mock.patch(
            "pipeline_tools.aws_ecr_push.publish_container"
        ) as publish:
            with self.assertRaises(PipelineToolError):
                publish_oidc(ECR_TAG, "token", "arn:role")
        publish.assert_not_called()

    def test_publish_oidc_passes_secret(self) -> None:
        with mock.patch("pipeline_tools.aws_ecr_push.login_oidc", return_value=_secrets("pw")) as login, mock.patch(
            "pipeline_tools.aws_ecr_push.publish_container", return_value="ref"
        ) as publish:
            self.assertEqual(publish_oidc(ECR_TAG, "token", "arn:role", region="eu-west-1"), "ref")
        self.assertEqual(login.call_args.kwargs["region"], "eu-west-1")
        publish.assert_called_once_with(ECR_TAG, "pw")

    def test_publish_oidc_forwards_aws_cli_image(self) -> None:
        with mock.patch("pipeline_tools.aws_ecr_push.login_oidc", return_value=_secrets("pw")) as login, mock.patch(
            "pipeline_tools.aws_ecr_push.publish_container", return_value="ref"
        ):
            publish_oidc(ECR_TAG, "token", "arn:role", aws_cli_image="mirror.example/aws-cli:2")
        self.assertEqual(login.call_args.kwargs["aws_cli_image"], "mirror.example/aws-cli:2")

    def test_main_reads_aws_cli_image_from_env(self) -> None:
        env = {
            "IMAGE_TAG": ECR_TAG,
            "OIDC_TOKEN": "token",
            "AWS_ROLE_ARN": "arn:role",
            "AWS_CLI_IMAGE": "mirror.example/aws-cli:2",
        }
        with mock.patch.dict(os.environ, env), mock.patch(
            "pipeline_tools.aws_ecr_push.build_and_push_oidc", return_value="ref"
        ) as build_and_push, mock.patch("pipeline_tools.aws_ecr_push.write_github_outputs") as write_outputs, mock.patch(
            "builtins.print"
        ):
            main()
        self.assertEqual(build_and_push.call_args.kwargs["aws_cli_image"], "mirror.example/aws-cli:2")
        write_outputs.assert_called_once_with({"image_ref": "ref"})


class BuildTests(unittest.TestCase):
    def test_build_dockerfile_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(PipelineToolError):
                build_dockerfile(tmp, ECR_TAG)

    def test_build_dockerfile_command(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / "build.Dockerfile").write_text("FROM scratch\n", encoding="utf-8")
            with mock.patch("pipeline_tools.aws_ecr_push.run_cmd", return_value="") as run_cmd, mock.patch("builtins.print"):
                build_dockerfile(tmp, ECR_TAG, dockerfile="build.Dockerfile")

        self.assertEqual(
            run_cmd.call_args.args[0],
            ["docker", "build", "--file", str(Path(tmp) / "build.Dockerfile"), "--tag", ECR_TAG, tmp],
        )

    def test_build_and_push_runs_build_first(self) -> None:
        order: list[str] = []
        with mock.patch(
            "pipeline_tools.aws_ecr_push.build_dockerfile", side_effect=lambda *a, **k: order.append("build")
        ), mock.patch(
            "pipeline_tools.aws_ecr_push.publish_oidc", side_effect=lambda *a, **k: order.append("publish") or "ref"
        ):
            self.assertEqual(build_and_push_oidc(".", ECR_TAG, "token", "arn:role"), "ref")
        self.assertEqual(order, ["build", "publish"])


if __name__ == "__main__":
    unittest.main()
