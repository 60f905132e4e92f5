"""
CDK stack for the serverless API.

This stack creates:
- Lambda execution role (baseline logging, optional read access to the
  application secret bundle)
- Three Lambda functions with workload-tuned limits
- One log group per function and one for API Gateway access logs, with
  environment-class retention
- REST API with CORS, throttling, access logging and a mock /health route

The function bundles are built outside this repository; each one lives in
its own directory under ``functions_path``.

Usage:
    cdk deploy IronmanCountdownApi-<environment> \\
        --context environment="preview-alice" \\
        --context functionsPath="../functions"
"""

import json
import os
from dataclasses import dataclass

from aws_cdk import CfnOutput, Duration, Stack, Tags
from aws_cdk import aws_apigateway as apigw
from aws_cdk import aws_lambda as _lambda
from aws_cdk import aws_logs as logs
from aws_cdk import aws_secretsmanager as secretsmanager
from constructs import Construct

from .constants import (
    API_STAGE_NAME,
    LAMBDA_BASELINE_POLICY,
    SECRETS_ACCESS_POLICY_NAME,
    secret_name_for,
)
from .environment import retention_for
from .shared_constructs import AccessRole, CapabilitySet

CORS_ALLOW_HEADERS = [
    "Content-Type",
    "X-Amz-Date",
    "Authorization",
    "X-Api-Key",
    "x-client-info",
    "apikey",
]

THROTTLING_RATE_LIMIT = 100
THROTTLING_BURST_LIMIT = 200


@dataclass(frozen=True)
class FunctionSpec:
    """Deployment contract for one compute function."""

    construct_id: str
    slug: str
    timeout_seconds: int
    memory_mb: int
    description: str


FUNCTION_SPECS = (
    FunctionSpec("EstimateRaceTime", "estimate-race-time", 30, 512, "Estimate race time"),
    FunctionSpec("ExtractWorkout", "extract-workout", 60, 1024, "Extract workout"),
    FunctionSpec("CalculateStatistics", "calculate-statistics", 30, 512, "Calculate statistics"),
)

HEALTH_RESPONSE = {"status": "healthy", "timestamp": "$context.requestTime"}


class ApiStack(Stack):
    """
    Stack for the REST API and its Lambda functions.

    Attributes:
        secret: Reference to the application secret bundle.
        role: Shared Lambda execution role.
        functions: Lambda functions keyed by route slug.
        log_groups: Log groups keyed by function slug, plus "api".
        api: The REST API.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        functions_path: str,
        grant_secrets_access: bool = True,
        **kwargs,
    ) -> None:
        """
        Initialize the ApiStack.

        Args:
            scope: CDK app or stage scope.
            construct_id: Unique identifier for this stack.
            environment: Deployment environment id.
            functions_path: Directory holding one bundle directory per function.
            grant_secrets_access: Let the functions read the secret bundle.
            **kwargs: Additional stack properties (env, description, etc.).
        """
        super().__init__(scope, construct_id, **kwargs)

        retention = retention_for(environment)

        # Existing secret, managed out-of-band by the secrets CLI
        self.secret = secretsmanager.Secret.from_secret_name_v2(
            self,
            "AppSecrets",
            secret_name_for(environment),
        )

        # Execution role; the ARN suffix wildcard covers the random secret suffix
        access_role = AccessRole(
            self,
            "LambdaRole",
            capabilities=CapabilitySet(secrets_access=grant_secrets_access),
            assumed_by="lambda.amazonaws.com",
            baseline_policy=LAMBDA_BASELINE_POLICY,
            policy_name=SECRETS_ACCESS_POLICY_NAME,
            secrets_resource=f"{self.secret.secret_arn}*",
            description=f"Lambda execution role for {construct_id}",
        )
        self.role = access_role.role

        self.functions: dict[str, _lambda.Function] = {}
        self.log_groups: dict[str, logs.LogGroup] = {}

        for spec in FUNCTION_SPECS:
            function_name = f"{construct_id}-{spec.slug}"

            log_group = logs.LogGroup(
                self,
                f"{spec.construct_id}LogGroup",
                log_group_name=f"/aws/lambda/{function_name}",
                retention=retention.log_retention,
                removal_policy=retention.removal_policy,
            )

            self.functions[spec.slug] = _lambda.Function(
                self,
                f"{spec.construct_id}Function",
                function_name=function_name,
                runtime=_lambda.Runtime.NODEJS_LATEST,
                handler="index.handler",
                code=_lambda.Code.from_asset(os.path.join(functions_path, spec.slug)),
                role=self.role,
                environment={
                    "ENVIRONMENT": environment,
                    "SECRETS_ARN": self.secret.secret_arn,
                },
                timeout=Duration.seconds(spec.timeout_seconds),
                memory_size=spec.memory_mb,
                log_group=log_group,
                description=f"{spec.description} function for {environment}",
            )
            self.log_groups[spec.slug] = log_group

        api_log_group = logs.LogGroup(
            self,
            "ApiLogGroup",
            log_group_name=f"/aws/apigateway/{construct_id}",
            retention=retention.log_retention,
            removal_policy=retention.removal_policy,
        )
        self.log_groups["api"] = api_log_group

        # Permissive CORS is intentional while the UI is served from several origins
        self.api = apigw.RestApi(
            self,
            "Api",
            rest_api_name=construct_id,
            description=f"Serverless API for {construct_id}",
            default_cors_preflight_options=apigw.CorsOptions(
                allow_origins=apigw.Cors.ALL_ORIGINS,
                allow_methods=apigw.Cors.ALL_METHODS,
                allow_headers=CORS_ALLOW_HEADERS,
            ),
            deploy_options=apigw.StageOptions(
                stage_name=API_STAGE_NAME,
                logging_level=apigw.MethodLoggingLevel.INFO,
                data_trace_enabled=False,
                metrics_enabled=True,
                access_log_destination=apigw.LogGroupLogDestination(api_log_group),
                access_log_format=apigw.AccessLogFormat.json_with_standard_fields(
                    caller=True,
                    http_method=True,
                    ip=True,
                    protocol=True,
                    request_time=True,
                    resource_path=True,
                    response_length=True,
                    status=True,
                    user=True,
                ),
                throttling_rate_limit=THROTTLING_RATE_LIMIT,
                throttling_burst_limit=THROTTLING_BURST_LIMIT,
            ),
        )

        for slug, function in self.functions.items():
            self.api.root.add_resource(slug).add_method(
                "POST",
                apigw.LambdaIntegration(function, proxy=True, allow_test_invoke=True),
            )

        # Health check answered by API Gateway itself (no cold start, no side effects)
        self.api.root.add_resource("health").add_method(
            "GET",
            apigw.MockIntegration(
                integration_responses=[
                    apigw.IntegrationResponse(
                        status_code="200",
                        response_templates={"application/json": json.dumps(HEALTH_RESPONSE)},
                    )
                ],
                request_templates={"application/json": '{"statusCode": 200}'},
            ),
            method_responses=[apigw.MethodResponse(status_code="200")],
        )

        # Outputs
        CfnOutput(
            self,
            "ApiUrl",
            value=self.api.url,
            description="API Gateway URL",
            export_name=f"{construct_id}-ApiUrl",
        )

        CfnOutput(
            self,
            "ApiId",
            value=self.api.rest_api_id,
            description="API Gateway ID",
            export_name=f"{construct_id}-ApiId",
        )

        CfnOutput(
            self,
            "SecretsArn",
            value=self.secret.secret_arn,
            description="Application Secrets ARN",
            export_name=f"{construct_id}-SecretsArn",
        )

        Tags.of(self).add("Stack", "Backend")
