"""
Whole-bundle access to one Secrets Manager secret.

The bundle is a flat JSON object of string keys to string values. It is
always read whole and written whole; there is no per-key update and no
locking, so concurrent writers race and the last write wins.

Throttling errors are retried with exponential backoff. Every other error
propagates unchanged so callers see the original AWS message.
"""

import json
import logging

from botocore.exceptions import ClientError
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

# Error codes that should trigger retry
RETRYABLE_ERROR_CODES = {
    "ThrottlingException",
    "TooManyRequestsException",
    "RequestLimitExceeded",
    "ServiceUnavailable",
    "InternalServiceError",
}


def error_code(exception: Exception) -> str:
    """Return the AWS error code of a ClientError, or an empty string."""
    if isinstance(exception, ClientError):
        return exception.response.get("Error", {}).get("Code", "")
    return ""


def is_retryable_error(exception: Exception) -> bool:
    """Check if exception should trigger a retry of the same call."""
    return error_code(exception) in RETRYABLE_ERROR_CODES


class SecretStore:
    """Secrets Manager client bound to a single secret name."""

    def __init__(
        self,
        client,
        secret_name: str,
        max_attempts: int = 3,
        min_wait_seconds: float = 1.0,
        max_wait_seconds: float = 10.0,
    ):
        self.client = client
        self.secret_name = secret_name
        self.max_attempts = max_attempts
        self.min_wait = min_wait_seconds
        self.max_wait = max_wait_seconds

    def _call(self, operation: str, **params):
        """Invoke a client operation, retrying throttled calls."""

        @retry(
            retry=retry_if_exception(is_retryable_error),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=self.min_wait, max=self.max_wait),
            reraise=True,
        )
        def _invoke():
            return getattr(self.client, operation)(**params)

        return _invoke()

    def exists(self) -> bool:
        """Return True if the secret exists."""
        try:
            self._call("describe_secret", SecretId=self.secret_name)
            return True
        except ClientError as e:
            if error_code(e) == "ResourceNotFoundException":
                return False
            raise

    def read(self) -> dict[str, str]:
        """
        Fetch and decode the current bundle.

        Raises:
            ValueError: If the secret is binary, or is not a JSON object of strings.
        """
        response = self._call("get_secret_value", SecretId=self.secret_name)
        if "SecretString" not in response:
            raise ValueError(f"Secret {self.secret_name} has no SecretString (binary secret?)")
        try:
            bundle = json.loads(response["SecretString"])
        except json.JSONDecodeError as e:
            raise ValueError(f"Secret {self.secret_name} is not valid JSON: {e}") from e
        if not isinstance(bundle, dict):
            raise ValueError(f"Secret {self.secret_name} does not hold a JSON object")
        non_strings = [key for key, value in bundle.items() if not isinstance(value, str)]
        if non_strings:
            raise ValueError(
                f"Secret {self.secret_name} has non-string values: {', '.join(non_strings)}"
            )
        return bundle

    def create(self, bundle: dict[str, str]) -> None:
        """Create the secret with its first version."""
        logger.info("Creating secret %s with %d keys", self.secret_name, len(bundle))
        self._call("create_secret", Name=self.secret_name, SecretString=json.dumps(bundle))

    def overwrite(self, bundle: dict[str, str]) -> None:
        """Store ``bundle`` as the new current version of the secret."""
        logger.info("Writing secret %s with %d keys", self.secret_name, len(bundle))
        self._call("put_secret_value", SecretId=self.secret_name, SecretString=json.dumps(bundle))
