"""
Deployment environment resolution and environment-class retention rules.

Every component that needs production/non-production behaviour goes through
``retention_for`` instead of comparing environment strings itself.
"""

import getpass
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from aws_cdk import RemovalPolicy
from aws_cdk import aws_logs as logs

from .constants import (
    DEFAULT_PREVIEW_ENVIRONMENT,
    ENVIRONMENT_ENV_VAR,
    PREVIEW_PREFIX,
    PRODUCTION_ENVIRONMENT,
    USERNAME_ENV_VAR,
)

logger = logging.getLogger(__name__)

# Environment ids end up in stack ids, bucket names and export names
ENVIRONMENT_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9-]*$")

_UNSAFE_USERNAME_CHARS = re.compile(r"[^a-z0-9-]+")


class EnvironmentClass(Enum):
    """Two-valued classification driving retention and removal defaults."""

    PRODUCTION = "production"
    NON_PRODUCTION = "non-production"

    @classmethod
    def of(cls, environment: str) -> "EnvironmentClass":
        if environment == PRODUCTION_ENVIRONMENT:
            return cls.PRODUCTION
        return cls.NON_PRODUCTION


@dataclass(frozen=True)
class RetentionPolicy:
    """Log retention and teardown behaviour for one environment class."""

    log_retention: logs.RetentionDays
    removal_policy: RemovalPolicy
    log_expiration_days: int

    @property
    def auto_delete_objects(self) -> bool:
        return self.removal_policy == RemovalPolicy.DESTROY


RETENTION_POLICIES: dict[EnvironmentClass, RetentionPolicy] = {
    EnvironmentClass.PRODUCTION: RetentionPolicy(
        log_retention=logs.RetentionDays.TEN_YEARS,
        removal_policy=RemovalPolicy.RETAIN,
        log_expiration_days=3650,
    ),
    EnvironmentClass.NON_PRODUCTION: RetentionPolicy(
        log_retention=logs.RetentionDays.ONE_WEEK,
        removal_policy=RemovalPolicy.DESTROY,
        log_expiration_days=7,
    ),
}


def retention_for(environment: str) -> RetentionPolicy:
    """Look up the retention policy for an environment id."""
    return RETENTION_POLICIES[EnvironmentClass.of(environment)]


def validate_environment(environment: str) -> str:
    """
    Validate an explicitly supplied environment id.

    Raises:
        ValueError: If the id cannot be embedded in resource names.
    """
    if not environment or not ENVIRONMENT_PATTERN.match(environment):
        raise ValueError(
            f"Invalid environment: {environment!r} "
            "(use letters, digits and hyphens, starting with a letter or digit)"
        )
    return environment


def _operator_name(environ: Mapping[str, str]) -> str:
    username = environ.get(USERNAME_ENV_VAR, "")
    if not username:
        try:
            username = getpass.getuser()
        except (OSError, KeyError, ImportError) as e:
            logger.debug("Could not determine operator name: %s", e)
            return ""
    return _UNSAFE_USERNAME_CHARS.sub("-", username.strip().lower()).strip("-")


def default_environment(environ: Mapping[str, str]) -> str:
    """Compute ``preview-<operator>``, falling back to ``preview-local``."""
    username = _operator_name(environ)
    if not username:
        return DEFAULT_PREVIEW_ENVIRONMENT
    return f"{PREVIEW_PREFIX}{username}"


def resolve_environment(explicit: str | None, environ: Mapping[str, str]) -> str:
    """
    Resolve the deployment environment id.

    Order: explicit value, then the ENVIRONMENT variable, then
    ``preview-<operator>``. Explicit and variable values are validated; the
    computed fallback is always a valid id.
    """
    if explicit:
        return validate_environment(str(explicit))
    from_env = environ.get(ENVIRONMENT_ENV_VAR)
    if from_env:
        return validate_environment(from_env)
    return default_environment(environ)
