"""
Reusable constructs shared by the application and pipeline stacks.

- AccessRole: service role whose inline policy is derived from a CapabilitySet
- ArtifactsBucket: encrypted, versioned bucket for pipeline artifacts

Capability statements come from a fixed mapping table. Enabling a flag always
contributes the same statements; disabling it contributes nothing, and the
baseline managed logging policy is attached regardless.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, fields

from aws_cdk import Duration, RemovalPolicy, Stack
from aws_cdk import aws_iam as iam
from aws_cdk import aws_s3 as s3
from constructs import Construct

from .constants import (
    APP_NAME,
    APP_SLUG,
    CODEBUILD_BASELINE_POLICY,
    CODEBUILD_POLICY_NAME,
)


@dataclass(frozen=True)
class CapabilitySet:
    """Permission flags for an AccessRole. Flags only ever add statements."""

    secrets_access: bool = False
    artifact_read_write: bool = False
    cloudformation_admin: bool = False
    bootstrap_admin: bool = False

    def enabled(self) -> list[str]:
        """Names of the enabled flags, in declaration order."""
        return [f.name for f in fields(self) if getattr(self, f.name)]


@dataclass(frozen=True)
class PolicyScope:
    """Account-level values the capability statements are rendered against."""

    region: str
    account: str
    secrets_resource: str | None = None
    artifacts_bucket_arn: str | None = None

    @property
    def resolved_secrets_resource(self) -> str:
        if self.secrets_resource:
            return self.secrets_resource
        return f"arn:aws:secretsmanager:{self.region}:{self.account}:secret:{APP_NAME}/*"


def _secrets_statements(scope: PolicyScope) -> list[iam.PolicyStatement]:
    resource = scope.resolved_secrets_resource
    # Prefix matches only; never the whole secrets namespace
    if resource == "*" or resource.endswith(":secret:*"):
        raise ValueError(f"Secrets access must be scoped to a name prefix, got {resource}")
    return [
        iam.PolicyStatement(
            effect=iam.Effect.ALLOW,
            actions=["secretsmanager:GetSecretValue"],
            resources=[resource],
        )
    ]


def _artifact_statements(scope: PolicyScope) -> list[iam.PolicyStatement]:
    if not scope.artifacts_bucket_arn:
        raise ValueError("artifact_read_write requires artifacts_bucket_arn")
    return [
        iam.PolicyStatement(
            effect=iam.Effect.ALLOW,
            actions=[
                "s3:GetObject",
                "s3:PutObject",
                "s3:ListBucket",
                "s3:GetBucketLocation",
            ],
            resources=[
                scope.artifacts_bucket_arn,
                f"{scope.artifacts_bucket_arn}/*",
            ],
        )
    ]


def _cloudformation_statements(scope: PolicyScope) -> list[iam.PolicyStatement]:
    return [
        iam.PolicyStatement(
            effect=iam.Effect.ALLOW,
            actions=[
                "cloudformation:DescribeStacks",
                "cloudformation:DescribeStackEvents",
                "cloudformation:DescribeStackResources",
                "cloudformation:GetTemplate",
                "cloudformation:CreateStack",
                "cloudformation:UpdateStack",
                "cloudformation:DeleteStack",
                "cloudformation:ValidateTemplate",
            ],
            resources=["*"],
        )
    ]


def _bootstrap_statements(scope: PolicyScope) -> list[iam.PolicyStatement]:
    return [
        iam.PolicyStatement(
            effect=iam.Effect.ALLOW,
            actions=[
                "cloudformation:*",
                "s3:*",
                "iam:*",
                "ssm:*",
                "sts:AssumeRole",
            ],
            resources=["*"],
        )
    ]


CAPABILITY_STATEMENTS: dict[str, Callable[[PolicyScope], list[iam.PolicyStatement]]] = {
    "secrets_access": _secrets_statements,
    "artifact_read_write": _artifact_statements,
    "cloudformation_admin": _cloudformation_statements,
    "bootstrap_admin": _bootstrap_statements,
}


def capability_statements(
    capabilities: CapabilitySet, scope: PolicyScope
) -> list[iam.PolicyStatement]:
    """Statements implied by the enabled flags, in mapping-table order."""
    enabled = set(capabilities.enabled())
    statements: list[iam.PolicyStatement] = []
    for flag, build in CAPABILITY_STATEMENTS.items():
        if flag in enabled:
            statements.extend(build(scope))
    return statements


class AccessRole(Construct):
    """
    Service role with capability-driven inline permissions.

    Attributes:
        role: The IAM role.
        statements: The statements placed in the inline policy.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        capabilities: CapabilitySet,
        assumed_by: str = "codebuild.amazonaws.com",
        baseline_policy: str = CODEBUILD_BASELINE_POLICY,
        policy_name: str = CODEBUILD_POLICY_NAME,
        secrets_resource: str | None = None,
        artifacts_bucket_arn: str | None = None,
        additional_statements: Sequence[iam.PolicyStatement] = (),
        description: str | None = None,
    ) -> None:
        super().__init__(scope, construct_id)

        stack = Stack.of(self)
        policy_scope = PolicyScope(
            region=stack.region,
            account=stack.account,
            secrets_resource=secrets_resource,
            artifacts_bucket_arn=artifacts_bucket_arn,
        )
        self.statements = capability_statements(capabilities, policy_scope) + list(
            additional_statements
        )

        inline_policies = {}
        if self.statements:
            inline_policies[policy_name] = iam.PolicyDocument(statements=self.statements)

        self.role = iam.Role(
            self,
            "Role",
            assumed_by=iam.ServicePrincipal(assumed_by),
            description=description or f"Service role for {construct_id}",
            inline_policies=inline_policies,
            managed_policies=[iam.ManagedPolicy.from_aws_managed_policy_name(baseline_policy)],
        )


class ArtifactsBucket(Construct):
    """Pipeline artifacts bucket with fixed encryption and lifecycle defaults."""

    def __init__(self, scope: Construct, construct_id: str) -> None:
        super().__init__(scope, construct_id)

        account = Stack.of(self).account

        self.bucket = s3.Bucket(
            self,
            "Bucket",
            bucket_name=f"{APP_SLUG}-pipeline-artifacts-{account}",
            encryption=s3.BucketEncryption.S3_MANAGED,
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            enforce_ssl=True,
            versioned=True,
            removal_policy=RemovalPolicy.RETAIN,
            lifecycle_rules=[
                s3.LifecycleRule(
                    id="DeleteOldArtifacts",
                    enabled=True,
                    noncurrent_version_expiration=Duration.days(30),
                    abort_incomplete_multipart_upload_after=Duration.days(7),
                )
            ],
        )
