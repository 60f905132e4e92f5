"""AWS client helpers for boto3 operations."""

import boto3


def get_session(profile: str | None = None) -> boto3.Session:
    """Create boto3 session with optional profile."""
    if profile:
        return boto3.Session(profile_name=profile)
    return boto3.Session()


def get_secrets_client(session: boto3.Session, region: str):
    """Create a Secrets Manager client for the region."""
    return session.client("secretsmanager", region_name=region)
