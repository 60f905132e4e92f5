"""CDK stacks for IronmanCountdown infrastructure."""

from .api_stack import FUNCTION_SPECS, ApiStack, FunctionSpec
from .app_builder import (
    DeploymentSettings,
    StackGraph,
    apply_global_tags,
    build_stack_graph,
    compose,
    load_settings,
)
from .constants import (
    API_STACK_PREFIX,
    APP_NAME,
    FRONTEND_STACK_PREFIX,
    PIPELINE_STACK_NAME,
    secret_name_for,
)
from .environment import (
    RETENTION_POLICIES,
    EnvironmentClass,
    RetentionPolicy,
    resolve_environment,
    retention_for,
)
from .frontend_stack import FrontendStack
from .pipeline_stack import PipelineStack
from .shared_constructs import (
    AccessRole,
    ArtifactsBucket,
    CapabilitySet,
    PolicyScope,
    capability_statements,
)

__all__ = [
    # Stacks
    "FrontendStack",
    "ApiStack",
    "PipelineStack",
    # Composition
    "DeploymentSettings",
    "StackGraph",
    "load_settings",
    "build_stack_graph",
    "apply_global_tags",
    "compose",
    # Shared constructs
    "AccessRole",
    "ArtifactsBucket",
    "CapabilitySet",
    "PolicyScope",
    "capability_statements",
    # Environment
    "EnvironmentClass",
    "RetentionPolicy",
    "RETENTION_POLICIES",
    "resolve_environment",
    "retention_for",
    # Functions
    "FunctionSpec",
    "FUNCTION_SPECS",
    # Constants
    "APP_NAME",
    "FRONTEND_STACK_PREFIX",
    "API_STACK_PREFIX",
    "PIPELINE_STACK_NAME",
    "secret_name_for",
]
