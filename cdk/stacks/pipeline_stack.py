"""
CDK stack for the CI/CD pipeline.

The pipeline tracks one branch through a CodeConnections source and runs a
single CodeBuild project that builds the web application and deploys the
application stacks for the production environment.

Usage:
    cdk deploy IronmanCountdownPipelineStack \\
        --context codeConnectionArn="arn:aws:codeconnections:..." \\
        --context repositoryName="owner/repo" \\
        --context branchName="main" \\
        --context pipelineOnly=true
"""

import re

from aws_cdk import CfnOutput, Duration, Stack, Tags
from aws_cdk import aws_codebuild as codebuild
from aws_cdk import aws_codepipeline as codepipeline
from aws_cdk import aws_codepipeline_actions as codepipeline_actions
from constructs import Construct

from .constants import APP_NAME, PRODUCTION_ENVIRONMENT
from .shared_constructs import AccessRole, ArtifactsBucket, CapabilitySet

CONNECTION_ARN_PATTERN = re.compile(
    r"^arn:aws:(codeconnections|codestar-connections):[a-z0-9-]+:\d{12}:connection/[\w-]+$"
)

REPOSITORY_NAME_PATTERN = re.compile(r"^[\w.-]+/[\w.-]+$")

DEPLOY_CAPABILITIES = CapabilitySet(
    secrets_access=True,
    artifact_read_write=True,
    cloudformation_admin=True,
    bootstrap_admin=True,
)


def deploy_build_spec() -> codebuild.BuildSpec:
    """Build spec that builds the UI and deploys the application stacks."""
    return codebuild.BuildSpec.from_object(
        {
            "version": "0.2",
            "phases": {
                "install": {
                    "runtime-versions": {"nodejs": "20", "python": "3.12"},
                    "commands": [
                        "npm install -g aws-cdk",
                        "pip install .",
                        "npm ci",
                    ],
                },
                "build": {
                    "commands": [
                        "npm run build",
                        "cd cdk && cdk deploy --all --require-approval never"
                        " --context environment=$ENVIRONMENT"
                        " --context buildPath=../dist",
                    ]
                },
            },
        }
    )


class PipelineStack(Stack):
    """
    Stack for the source-to-deploy pipeline.

    Attributes:
        artifacts: Pipeline artifacts bucket construct.
        deploy_role: Role used by the deploy project.
        project: CodeBuild deploy project.
        pipeline: The CodePipeline pipeline.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        code_connection_arn: str,
        repository_name: str,
        branch_name: str,
        deploy_environment: str = PRODUCTION_ENVIRONMENT,
        **kwargs,
    ) -> None:
        """
        Initialize the PipelineStack.

        Args:
            scope: CDK app or stage scope.
            construct_id: Unique identifier for this stack.
            code_connection_arn: ARN of the CodeConnections connection.
            repository_name: Source repository as "owner/repo".
            branch_name: Branch to track.
            deploy_environment: Environment id the pipeline deploys.
            **kwargs: Additional stack properties (env, description, etc.).

        Raises:
            ValueError: If the connection ARN or repository name is malformed.
        """
        super().__init__(scope, construct_id, **kwargs)

        if not code_connection_arn or not CONNECTION_ARN_PATTERN.match(code_connection_arn):
            raise ValueError(f"Invalid CodeConnections ARN format: {code_connection_arn}")
        if not repository_name or not REPOSITORY_NAME_PATTERN.match(repository_name):
            raise ValueError(
                f"Invalid repository name: {repository_name} (expected format: owner/repo)"
            )
        if not branch_name or not branch_name.strip():
            raise ValueError("branch_name cannot be empty")

        owner, repo = repository_name.split("/", 1)

        self.artifacts = ArtifactsBucket(self, "ArtifactsBucket")

        self.deploy_role = AccessRole(
            self,
            "DeployRole",
            capabilities=DEPLOY_CAPABILITIES,
            artifacts_bucket_arn=self.artifacts.bucket.bucket_arn,
            description=f"CodeBuild deploy role for {APP_NAME}",
        )

        self.project = codebuild.PipelineProject(
            self,
            "DeployProject",
            project_name=f"{APP_NAME}-deploy",
            description=f"Build and deploy {APP_NAME} ({deploy_environment})",
            role=self.deploy_role.role,
            environment=codebuild.BuildEnvironment(
                build_image=codebuild.LinuxBuildImage.STANDARD_7_0,
                compute_type=codebuild.ComputeType.SMALL,
            ),
            environment_variables={
                "ENVIRONMENT": codebuild.BuildEnvironmentVariable(value=deploy_environment),
            },
            build_spec=deploy_build_spec(),
            timeout=Duration.minutes(30),
        )

        self.pipeline = codepipeline.Pipeline(
            self,
            "Pipeline",
            pipeline_name=f"{APP_NAME}-pipeline",
            artifact_bucket=self.artifacts.bucket,
            restart_execution_on_update=True,
        )

        source_output = codepipeline.Artifact("SourceOutput")
        self.pipeline.add_stage(
            stage_name="Source",
            actions=[
                codepipeline_actions.CodeStarConnectionsSourceAction(
                    action_name="Source",
                    connection_arn=code_connection_arn,
                    owner=owner,
                    repo=repo,
                    branch=branch_name,
                    output=source_output,
                )
            ],
        )

        self.pipeline.add_stage(
            stage_name="Deploy",
            actions=[
                codepipeline_actions.CodeBuildAction(
                    action_name="Deploy",
                    project=self.project,
                    input=source_output,
                )
            ],
        )

        # Outputs
        CfnOutput(
            self,
            "PipelineName",
            value=self.pipeline.pipeline_name,
            description="CodePipeline name",
            export_name=f"{construct_id}-PipelineName",
        )

        CfnOutput(
            self,
            "ArtifactsBucketName",
            value=self.artifacts.bucket.bucket_name,
            description="Pipeline artifacts bucket",
            export_name=f"{construct_id}-ArtifactsBucket",
        )

        Tags.of(self).add("Stack", "Pipeline")
