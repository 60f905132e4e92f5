"""Pytest fixtures for CDK and secrets tool tests."""

import os
import sys
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

# Add cdk directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "cdk"))

from stacks.api_stack import FUNCTION_SPECS  # noqa: E402

TEST_ACCOUNT = "123456789012"
TEST_REGION = "us-east-1"


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch):
    """Isolate tests from the operator's shell environment."""
    for name in ("ENVIRONMENT", "APP_NAME", "SECRET_NAME", "AWS_PROFILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AWS_REGION", TEST_REGION)
    monkeypatch.setenv("USER", "tester")


@pytest.fixture
def functions_dir(tmp_path):
    """Directory with one placeholder bundle per compute function."""
    root = tmp_path / "functions"
    for spec in FUNCTION_SPECS:
        bundle = root / spec.slug
        bundle.mkdir(parents=True)
        (bundle / "index.js").write_text("exports.handler = async () => ({ statusCode: 200 });\n")
    return str(root)


@pytest.fixture
def build_dir(tmp_path):
    """Directory standing in for the built web application."""
    root = tmp_path / "dist"
    root.mkdir()
    (root / "index.html").write_text("<!doctype html><div id='root'></div>\n")
    return str(root)


def client_error(code: str, operation: str = "GetSecretValue") -> ClientError:
    """Build a botocore ClientError with the given error code."""
    return ClientError({"Error": {"Code": code, "Message": f"{code} raised"}}, operation)


@pytest.fixture
def mock_secrets_client():
    """Mock Secrets Manager client holding no secret."""
    client = MagicMock()
    client.describe_secret.side_effect = client_error(
        "ResourceNotFoundException", "DescribeSecret"
    )
    return client


class FakeSecretStore:
    """In-memory SecretStore double that counts remote calls."""

    def __init__(self, bundle: dict[str, str] | None = None, secret_name: str = "App/test/secrets"):
        self.secret_name = secret_name
        self.bundle = None if bundle is None else dict(bundle)
        self.reads = 0
        self.writes: list[dict[str, str]] = []

    def exists(self) -> bool:
        return self.bundle is not None

    def read(self) -> dict[str, str]:
        self.reads += 1
        if self.bundle is None:
            raise client_error("ResourceNotFoundException")
        return dict(self.bundle)

    def create(self, bundle: dict[str, str]) -> None:
        self.bundle = dict(bundle)
        self.writes.append(dict(bundle))

    def overwrite(self, bundle: dict[str, str]) -> None:
        self.bundle = dict(bundle)
        self.writes.append(dict(bundle))


@pytest.fixture
def fake_store():
    """Factory for FakeSecretStore instances."""
    return FakeSecretStore
