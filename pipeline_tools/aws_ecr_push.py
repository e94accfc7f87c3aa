"""
Script: pipeline_tools/aws_ecr_push.py
What: Builds a Docker image and pushes it to Amazon ECR using OIDC login.
Doing: Runs `docker build`, logs in to the registry with the ECR password on stdin, and runs `docker push`.
Why: Keeps build/login/push ordering and secret handling in one place instead of workflow shell.
Goal: Publish the image and report the pushed `name@digest` reference.

Environment:
- IMAGE_TAG: full image name, starting with the ECR registry host (optionally `:tag`)
- BUILD_CONTEXT: Docker build context directory (default: current directory)
- DOCKERFILE: Dockerfile path relative to the context (default: Dockerfile)
- OIDC_TOKEN, AWS_ROLE_ARN, AWS_SESSION_DURATION, AWS_REGION, AWS_SESSION_NAME,
  AWS_CLI_IMAGE: same as `aws-oidc-login`
"""

from __future__ import annotations

import re
from pathlib import Path

from pipeline_tools.aws_oidc_login import (
    DEFAULT_AWS_CLI_IMAGE,
    DEFAULT_DURATION_SEC,
    DEFAULT_REGION,
    login_oidc,
)
from pipeline_tools.common import (
    PipelineToolError,
    optional_env,
    optional_int_env,
    require_env,
    run_cmd,
    write_github_outputs,
)


DEFAULT_DOCKERFILE = "Dockerfile"
ECR_USERNAME = "AWS"

# `docker push` ends with a line like `1.2.3: digest: sha256:<hex> size: 1234`.
PUSH_DIGEST_RE = re.compile(r"digest:\s*(?P<digest>sha256:[0-9a-f]{64})")
# Tag suffix is the part after the last `:` that is not followed by a `/`
# (so `host:5000/repo` keeps its port).
TAG_SUFFIX_RE = re.compile(r":[^/:@]+$")


def registry_host(image_tag: str) -> str:
    """Return the registry host of an image name like `<host>/<repo>:<tag>`."""
    host, separator, _rest = image_tag.partition("/")
    if not separator or not host:
        raise PipelineToolError(f"Image tag has no registry host: {image_tag}")
    return host


def image_name_without_tag(image_tag: str) -> str:
    """Drop the `:tag` suffix, keeping any registry port."""
    return TAG_SUFFIX_RE.sub("", image_tag)


def extract_push_digest(push_output: str) -> str:
    """Return the last `sha256:` digest printed by `docker push`, or empty string."""
    digests = [match.group("digest") for match in PUSH_DIGEST_RE.finditer(push_output)]
    return digests[-1] if digests else ""


def build_dockerfile(root: str | Path, image_tag: str, *, dockerfile: str = DEFAULT_DOCKERFILE) -> str:
    """Build `root` with `dockerfile` and tag the result as `image_tag`."""
    root_path = Path(root)
    dockerfile_path = root_path / dockerfile
    if not dockerfile_path.is_file():
        raise PipelineToolError(f"Dockerfile not found: {dockerfile_path}")

    run_cmd(
        ["docker", "build", "--file", str(dockerfile_path), "--tag", image_tag, str(root_path)],
        capture_output=False,
    )
    print(f"Built image {image_tag}")
    return image_tag


def publish_container(image_tag: str, ecr_secret: str) -> str:
    """
    Log in to the image's registry and push it.

    Returns `name@digest` when the digest can be read from the push output,
    otherwise the tag that was pushed.
    """
    host = registry_host(image_tag)
    # Password goes through stdin so it never lands in argv or shared state.
    run_cmd(
        ["docker", "login", "--username", ECR_USERNAME, "--password-stdin", host],
        input_text=ecr_secret,
    )
    push_output = run_cmd(["docker", "push", image_tag])
    print(push_output, end="")

    digest = extract_push_digest(push_output)
    if not digest:
        return image_tag
    return f"{image_name_without_tag(image_tag)}@{digest}"


def publish_oidc(
    image_tag: str,
    token: str,
    role_arn: str,
    *,
    duration_sec: int = DEFAULT_DURATION_SEC,
    region: str = DEFAULT_REGION,
    session_name: str = "",
    aws_cli_image: str = DEFAULT_AWS_CLI_IMAGE,
) -> str:
    """Log in to AWS with OIDC, then push an already built `image_tag`."""
    secrets = login_oidc(
        token,
        role_arn,
        duration_sec=duration_sec,
        region=region,
        session_name=session_name,
        aws_cli_image=aws_cli_image,
    )
    if not secrets.ecr_secret:
        raise PipelineToolError("Failed to get ECR secret")
    return publish_container(image_tag, secrets.ecr_secret)


def build_and_push_oidc(
    root: str | Path,
    image_tag: str,
    token: str,
    role_arn: str,
    *,
    dockerfile: str = DEFAULT_DOCKERFILE,
    duration_sec: int = DEFAULT_DURATION_SEC,
    region: str = DEFAULT_REGION,
    session_name: str = "",
    aws_cli_image: str = DEFAULT_AWS_CLI_IMAGE,
) -> str:
    """Build the Dockerfile under `root` and push it to ECR."""
    build_dockerfile(root, image_tag, dockerfile=dockerfile)
    return publish_oidc(
        image_tag,
        token,
        role_arn,
        duration_sec=duration_sec,
        region=region,
        session_name=session_name,
        aws_cli_image=aws_cli_image,
    )


def main() -> None:
    image_ref = build_and_push_oidc(
        optional_env("BUILD_CONTEXT", "."),
        require_env("IMAGE_TAG"),
        require_env("OIDC_TOKEN"),
        require_env("AWS_ROLE_ARN"),
        dockerfile=optional_env("DOCKERFILE", DEFAULT_DOCKERFILE),
        duration_sec=optional_int_env("AWS_SESSION_DURATION", DEFAULT_DURATION_SEC),
        region=optional_env("AWS_REGION", DEFAULT_REGION),
        session_name=optional_env("AWS_SESSION_NAME"),
        aws_cli_image=optional_env("AWS_CLI_IMAGE", DEFAULT_AWS_CLI_IMAGE),
    )

    write_github_outputs({"image_ref": image_ref})
    print(f"Published image: {image_ref}")


if __name__ == "__main__":
    main()
