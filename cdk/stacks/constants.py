"""Constants used across CDK stacks."""

# Application identity
APP_NAME = "IronmanCountdown"
APP_SLUG = "ironman-countdown"

# Stack names - environment-scoped stacks append "-<environment>"
FRONTEND_STACK_PREFIX = f"{APP_NAME}Frontend"
API_STACK_PREFIX = f"{APP_NAME}Api"
PIPELINE_STACK_NAME = f"{APP_NAME}PipelineStack"

# Environment resolution
PRODUCTION_ENVIRONMENT = "prod"
PREVIEW_PREFIX = "preview-"
DEFAULT_PREVIEW_ENVIRONMENT = "preview-local"
ENVIRONMENT_ENV_VAR = "ENVIRONMENT"
USERNAME_ENV_VAR = "USER"

# CDK context keys - passed via --context flags
CONTEXT_CODE_CONNECTION_ARN = "codeConnectionArn"
CONTEXT_REPOSITORY_NAME = "repositoryName"
CONTEXT_BRANCH_NAME = "branchName"
CONTEXT_PIPELINE_ONLY = "pipelineOnly"
CONTEXT_ENVIRONMENT = "environment"
CONTEXT_BUILD_PATH = "buildPath"
CONTEXT_WITH_ASSETS = "withAssets"
CONTEXT_FUNCTIONS_PATH = "functionsPath"

# Context defaults
DEFAULT_REPOSITORY_NAME = "marinsokol5/ironman-countdown"
DEFAULT_BRANCH_NAME = "main"
DEFAULT_BUILD_PATH = "../dist"
DEFAULT_FUNCTIONS_PATH = "../functions"
DEFAULT_REGION = "us-east-1"

# Resource identifiers
SECRETS_ACCESS_POLICY_NAME = "SecretsAccess"
CODEBUILD_POLICY_NAME = "CodeBuildPolicy"
LAMBDA_BASELINE_POLICY = "service-role/AWSLambdaBasicExecutionRole"
CODEBUILD_BASELINE_POLICY = "CloudWatchLogsFullAccess"
API_STAGE_NAME = "v1"
SPA_INDEX_DOCUMENT = "index.html"


def secret_name_for(environment: str) -> str:
    """Name of the application secret bundle for an environment."""
    return f"{APP_NAME}/{environment}/secrets"
