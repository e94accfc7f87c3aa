"""
Script: pipeline_tools/aws_oidc_login.py
What: Exchanges a CI OIDC token for temporary AWS credentials and an ECR password.
Doing: Runs the AWS CLI container, which writes a shell-style credentials file, then parses that file.
Why: Avoids long-lived AWS keys in CI; the role trust policy decides who may log in.
Goal: Provide AWS credentials and the ECR registry password for later steps.

Environment:
- OIDC_TOKEN: web identity token issued by the CI provider
- AWS_ROLE_ARN: IAM role to assume
- AWS_SESSION_DURATION: seconds, at least 900 (default: 900)
- AWS_REGION: default region (default: us-east-1)
- AWS_SESSION_NAME: shows up in CloudTrail (default: OIDC_LOGIN-<region>)
- AWS_CLI_IMAGE: container image that provides `aws` (default: public.ecr.aws/aws-cli/aws-cli)
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from pipeline_tools.common import (
    MissingFieldError,
    PipelineToolError,
    mask_github_values,
    optional_env,
    optional_int_env,
    require_env,
    run_cmd,
    write_github_outputs,
)
from pipeline_tools.keyvalue import parse_key_values, require_key


DEFAULT_REGION = "us-east-1"
DEFAULT_DURATION_SEC = 900
MIN_DURATION_SEC = 900
DEFAULT_AWS_CLI_IMAGE = "public.ecr.aws/aws-cli/aws-cli"

# Path inside the AWS CLI container; the host temp dir is mounted at /creds.
CONTAINER_CREDS_DIR = "/creds"
CREDS_FILE_NAME = "aws_creds"

# Every step appends `export KEY="VALUE"` lines to the same file, so the file
# can be sourced by the next step and parsed by `parse_key_values` at the end.
LOGIN_SCRIPT = r"""
printf 'export OIDC_TOKEN="%s"\n' "${OIDC_TOKEN:?OIDC Token missing}" > "${CREDS_FILE_PATH}"
printf 'export AWS_DEFAULT_REGION="%s"\n' "${AWS_DEFAULT_REGION}" >> "${CREDS_FILE_PATH}"
printf 'export AWS_ROLE_ARN="%s"\n' "${AWS_ROLE_ARN:?Assumed role ARN missing}" >> "${CREDS_FILE_PATH}"
printf 'export AWS_SESSION_NAME="%s"\n' "${AWS_SESSION_NAME}" >> "${CREDS_FILE_PATH}"
printf 'export AWS_SESSION_DURATION="%s"\n' "${AWS_SESSION_DURATION}" >> "${CREDS_FILE_PATH}"

ts=$(TZ=UTC date +%s)
ts_exp=$((ts + AWS_SESSION_DURATION))
echo "export AWS_SESSION_ISS_UTC=${ts}" >> "${CREDS_FILE_PATH}"
echo "export AWS_SESSION_EXP_UTC=${ts_exp}" >> "${CREDS_FILE_PATH}"

AWS_CREDS=$(aws sts assume-role-with-web-identity \
    --role-arn "${AWS_ROLE_ARN}" \
    --role-session-name "${AWS_SESSION_NAME}" \
    --web-identity-token "${OIDC_TOKEN}" \
    --duration-seconds "${AWS_SESSION_DURATION:-901}" \
    --query 'Credentials.[AccessKeyId,SecretAccessKey,SessionToken]' \
    --output text)
printf 'export AWS_ACCESS_KEY_ID="%s"\nexport AWS_SECRET_ACCESS_KEY="%s"\nexport AWS_SESSION_TOKEN="%s"\n' \
    ${AWS_CREDS:?AWS credentials missing} >> "${CREDS_FILE_PATH}"

. "${CREDS_FILE_PATH}"
printf 'export AWS_ECR_SECRET="%s"\n' \
    "$(aws ecr get-login-password --region "${AWS_DEFAULT_REGION}")" >> "${CREDS_FILE_PATH}"
"""


@dataclass(frozen=True)
class AwsSecrets:
    """Values read back from the credentials file."""

    duration_sec: int
    from_ts_utc: int
    until_ts_utc: int
    default_region: str = ""
    oidc_token: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    session_token: str = ""
    ecr_secret: str = ""


def default_session_name(region: str) -> str:
    """Session name used when the caller does not pick one."""
    return f"OIDC_LOGIN-{region}"


def _required_int(raw: Mapping[str, str], key: str) -> int:
    value = require_key(raw, key)
    try:
        return int(value)
    except ValueError as exc:
        raise MissingFieldError(f"Cannot find '{key}'") from exc


def to_secrets(raw: Mapping[str, str]) -> AwsSecrets:
    """
    Convert parsed credentials-file values into `AwsSecrets`.

    The three timing fields must be present and numeric. String fields default
    to empty; callers that need one (for example the ECR password) check it.
    """
    return AwsSecrets(
        duration_sec=_required_int(raw, "AWS_SESSION_DURATION"),
        from_ts_utc=_required_int(raw, "AWS_SESSION_ISS_UTC"),
        until_ts_utc=_required_int(raw, "AWS_SESSION_EXP_UTC"),
        default_region=raw.get("AWS_DEFAULT_REGION", ""),
        oidc_token=raw.get("OIDC_TOKEN", ""),
        access_key_id=raw.get("AWS_ACCESS_KEY_ID", ""),
        secret_access_key=raw.get("AWS_SECRET_ACCESS_KEY", ""),
        session_token=raw.get("AWS_SESSION_TOKEN", ""),
        ecr_secret=raw.get("AWS_ECR_SECRET", ""),
    )


def authenticate(
    token: str,
    role_arn: str,
    *,
    region: str,
    session_name: str,
    duration_sec: int,
    aws_cli_image: str = DEFAULT_AWS_CLI_IMAGE,
) -> str:
    """
    Run the login script in the AWS CLI container and return the credentials file text.

    The token and role are passed through the environment (`docker run -e NAME`
    without a value copies it from our environment), so they never appear in
    the process list.
    """
    login_env = dict(os.environ)
    login_env.update(
        {
            "OIDC_TOKEN": token,
            "AWS_ROLE_ARN": role_arn,
            "AWS_DEFAULT_REGION": region,
            "AWS_SESSION_NAME": session_name,
            "AWS_SESSION_DURATION": str(duration_sec),
        }
    )

    with tempfile.TemporaryDirectory(prefix="aws-oidc-") as creds_dir:
        command = [
            "docker",
            "run",
            "--rm",
            "--entrypoint",
            "bash",
            "-v",
            f"{creds_dir}:{CONTAINER_CREDS_DIR}",
            "-e",
            f"CREDS_FILE_PATH={CONTAINER_CREDS_DIR}/{CREDS_FILE_NAME}",
            "-e",
            "OIDC_TOKEN",
            "-e",
            "AWS_ROLE_ARN",
            "-e",
            "AWS_DEFAULT_REGION",
            "-e",
            "AWS_SESSION_NAME",
            "-e",
            "AWS_SESSION_DURATION",
            aws_cli_image,
            "-ec",
            LOGIN_SCRIPT,
        ]
        run_cmd(command, env=login_env)

        creds_file = Path(creds_dir) / CREDS_FILE_NAME
        if not creds_file.exists():
            raise PipelineToolError(f"AWS login did not write a credentials file ({creds_file})")
        return creds_file.read_text(encoding="utf-8")


def login_oidc(
    token: str,
    role_arn: str,
    *,
    duration_sec: int = DEFAULT_DURATION_SEC,
    region: str = DEFAULT_REGION,
    session_name: str = "",
    aws_cli_image: str = DEFAULT_AWS_CLI_IMAGE,
) -> AwsSecrets:
    """Assume `role_arn` with the OIDC `token` and return the resulting secrets."""
    if duration_sec < MIN_DURATION_SEC:
        raise PipelineToolError(
            f"Session duration must be at least {MIN_DURATION_SEC} seconds, got {duration_sec}"
        )
    if not session_name:
        session_name = default_session_name(region)

    exported = authenticate(
        token,
        role_arn,
        region=region,
        session_name=session_name,
        duration_sec=duration_sec,
        aws_cli_image=aws_cli_image,
    )
    return to_secrets(parse_key_values(exported))


def main() -> None:
    secrets = login_oidc(
        require_env("OIDC_TOKEN"),
        require_env("AWS_ROLE_ARN"),
        duration_sec=optional_int_env("AWS_SESSION_DURATION", DEFAULT_DURATION_SEC),
        region=optional_env("AWS_REGION", DEFAULT_REGION),
        session_name=optional_env("AWS_SESSION_NAME"),
        aws_cli_image=optional_env("AWS_CLI_IMAGE", DEFAULT_AWS_CLI_IMAGE),
    )

    # Mask first: GitHub only redacts values it was told about before they are logged.
    mask_github_values(
        [
            secrets.access_key_id,
            secrets.secret_access_key,
            secrets.session_token,
            secrets.ecr_secret,
        ]
    )
    write_github_outputs(
        {
            "aws_access_key_id": secrets.access_key_id,
            "aws_secret_access_key": secrets.secret_access_key,
            "aws_session_token": secrets.session_token,
            "aws_default_region": secrets.default_region,
            "aws_session_iss_utc": str(secrets.from_ts_utc),
            "aws_session_exp_utc": str(secrets.until_ts_utc),
            "ecr_secret": secrets.ecr_secret,
        }
    )
    print(f"Assumed AWS role until {secrets.until_ts_utc} (UTC epoch seconds)")


if __name__ == "__main__":
    main()
