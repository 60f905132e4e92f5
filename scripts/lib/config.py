"""Configuration loading and validation for the secrets tool."""

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import dotenv_values

from stacks.constants import APP_NAME, DEFAULT_REGION
from stacks.environment import resolve_environment


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


@dataclass
class SecretsConfig:
    """Resolved secrets tool configuration."""

    app_name: str
    environment: str
    secret_name: str
    aws_region: str
    aws_profile: str | None = None


def load_env_file(env_path: Path = Path(".env")) -> dict[str, str]:
    """Load optional overrides from a .env file using python-dotenv."""
    if not env_path.exists():
        return {}
    return {key: value for key, value in dotenv_values(env_path).items() if value is not None}


def validate_aws_region(region: str) -> None:
    """Validate AWS region format (e.g., us-east-1)."""
    pattern = r"^[a-z]{2}-[a-z]+-[0-9]+$"
    if not re.match(pattern, region):
        raise ConfigurationError(
            f"Invalid AWS_REGION format: {region} (expected format: us-east-1)"
        )


def get_secrets_config(
    aws_profile: str | None = None,
    environ: Mapping[str, str] | None = None,
    env_path: Path = Path(".env"),
) -> SecretsConfig:
    """
    Resolve configuration; process environment wins over the .env file.

    The environment id is resolved exactly as the CDK app resolves it, so the
    default secret name matches the one the API functions read.

    Raises:
        ConfigurationError: If ENVIRONMENT or AWS_REGION is malformed.
    """
    env = {**load_env_file(env_path), **(os.environ if environ is None else environ)}

    try:
        environment = resolve_environment(None, env)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    app_name = env.get("APP_NAME") or APP_NAME
    secret_name = env.get("SECRET_NAME") or f"{app_name}/{environment}/secrets"
    aws_region = env.get("AWS_REGION") or DEFAULT_REGION

    validate_aws_region(aws_region)

    return SecretsConfig(
        app_name=app_name,
        environment=environment,
        secret_name=secret_name,
        aws_region=aws_region,
        aws_profile=aws_profile or env.get("AWS_PROFILE") or None,
    )
