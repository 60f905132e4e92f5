"""
Stack graph composition for the CDK app.

Reads deployment settings from CDK context and the process environment,
decides which stacks to instantiate, and applies the global tags once all
stacks are registered.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

import aws_cdk as cdk

from .api_stack import ApiStack
from .constants import (
    API_STACK_PREFIX,
    APP_NAME,
    CONTEXT_BRANCH_NAME,
    CONTEXT_BUILD_PATH,
    CONTEXT_CODE_CONNECTION_ARN,
    CONTEXT_ENVIRONMENT,
    CONTEXT_FUNCTIONS_PATH,
    CONTEXT_PIPELINE_ONLY,
    CONTEXT_REPOSITORY_NAME,
    CONTEXT_WITH_ASSETS,
    DEFAULT_BRANCH_NAME,
    DEFAULT_BUILD_PATH,
    DEFAULT_FUNCTIONS_PATH,
    DEFAULT_REGION,
    DEFAULT_REPOSITORY_NAME,
    FRONTEND_STACK_PREFIX,
    PIPELINE_STACK_NAME,
)
from .environment import resolve_environment
from .frontend_stack import FrontendStack
from .pipeline_stack import PipelineStack

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeploymentSettings:
    """Resolved inputs for one synthesis; environment is None in pipeline-only mode."""

    environment: str | None
    account: str | None
    region: str
    code_connection_arn: str | None
    repository_name: str
    branch_name: str
    pipeline_only: bool
    build_path: str
    with_assets: bool
    functions_path: str

    @property
    def cdk_environment(self) -> cdk.Environment:
        return cdk.Environment(account=self.account, region=self.region)


@dataclass
class StackGraph:
    """Stacks registered on the app; skipped stacks are None."""

    frontend: FrontendStack | None = None
    api: ApiStack | None = None
    pipeline: PipelineStack | None = None

    @property
    def has_application_stacks(self) -> bool:
        return self.frontend is not None or self.api is not None


def _flag(value, default: bool) -> bool:
    """Interpret a context flag; CLI context values arrive as strings."""
    if value is None:
        return default
    return str(value).strip().lower() == "true"


def load_settings(app: cdk.App, environ: Mapping[str, str]) -> DeploymentSettings:
    """
    Read deployment settings from CDK context and the process environment.

    The environment id is only resolved, and validated, when application
    stacks will be built.
    """
    node = app.node
    with_assets = node.try_get_context(CONTEXT_WITH_ASSETS)
    pipeline_only = _flag(node.try_get_context(CONTEXT_PIPELINE_ONLY), default=False)

    environment = None
    if not pipeline_only:
        environment = resolve_environment(node.try_get_context(CONTEXT_ENVIRONMENT), environ)

    return DeploymentSettings(
        environment=environment,
        account=environ.get("CDK_DEFAULT_ACCOUNT"),
        region=environ.get("CDK_DEFAULT_REGION") or DEFAULT_REGION,
        code_connection_arn=node.try_get_context(CONTEXT_CODE_CONNECTION_ARN) or None,
        repository_name=node.try_get_context(CONTEXT_REPOSITORY_NAME) or DEFAULT_REPOSITORY_NAME,
        branch_name=node.try_get_context(CONTEXT_BRANCH_NAME) or DEFAULT_BRANCH_NAME,
        pipeline_only=pipeline_only,
        build_path=node.try_get_context(CONTEXT_BUILD_PATH) or DEFAULT_BUILD_PATH,
        with_assets=str(with_assets).strip().lower() != "false",
        functions_path=node.try_get_context(CONTEXT_FUNCTIONS_PATH) or DEFAULT_FUNCTIONS_PATH,
    )


def build_stack_graph(app: cdk.App, settings: DeploymentSettings) -> StackGraph:
    """Instantiate the stacks selected by ``settings`` on ``app``."""
    graph = StackGraph()
    env = settings.cdk_environment
    environment = settings.environment

    if not settings.pipeline_only:
        graph.frontend = FrontendStack(
            app,
            f"{FRONTEND_STACK_PREFIX}-{environment}",
            env=env,
            environment=environment,
            build_output_path=settings.build_path,
            with_assets=settings.with_assets,
            description=f"Static website hosting - {environment}",
        )

        graph.api = ApiStack(
            app,
            f"{API_STACK_PREFIX}-{environment}",
            env=env,
            environment=environment,
            functions_path=settings.functions_path,
            description=f"Serverless API - {environment}",
        )

    if settings.code_connection_arn:
        graph.pipeline = PipelineStack(
            app,
            PIPELINE_STACK_NAME,
            env=env,
            code_connection_arn=settings.code_connection_arn,
            repository_name=settings.repository_name,
            branch_name=settings.branch_name,
            description=f"CI/CD Pipeline for {APP_NAME}",
        )
    else:
        logger.warning(
            "CodeConnection ARN not provided (--context %s=...). "
            "Pipeline stack will not be created.",
            CONTEXT_CODE_CONNECTION_ARN,
        )

    return graph


def apply_global_tags(app: cdk.App, settings: DeploymentSettings, graph: StackGraph) -> None:
    """Tag the whole composition. Call once, after every stack is registered."""
    tags = cdk.Tags.of(app)
    tags.add("Project", APP_NAME)
    tags.add("ManagedBy", "CDK")
    if graph.has_application_stacks:
        tags.add("Environment", settings.environment)


def compose(app: cdk.App, environ: Mapping[str, str]) -> StackGraph:
    """Load settings, build the stack graph and finalize it."""
    settings = load_settings(app, environ)
    logger.info(
        "Composing %s for environment %s (pipeline only: %s)",
        APP_NAME,
        settings.environment or "n/a",
        settings.pipeline_only,
    )
    graph = build_stack_graph(app, settings)
    apply_global_tags(app, settings, graph)
    return graph
