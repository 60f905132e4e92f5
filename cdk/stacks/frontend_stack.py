"""
CDK stack for static website hosting.

This stack serves the single-page application from a private S3 bucket through
CloudFront:
- Log bucket for S3 access logs and CloudFront standard logs
- Private website bucket, readable only by this stack's distribution
- Response headers policy with security headers
- Distribution with SPA fallback (403/404 -> /index.html with HTTP 200)
- Optional upload of the built site with cache invalidation

Usage:
    cdk deploy IronmanCountdownFrontend-<environment> \\
        --context environment="preview-alice" \\
        --context buildPath="../dist"

    # Provision infrastructure before build artifacts exist
    cdk deploy IronmanCountdownFrontend-<environment> --context withAssets=false
"""

from aws_cdk import CfnOutput, Duration, RemovalPolicy, Stack, Tags
from aws_cdk import aws_cloudfront as cloudfront
from aws_cdk import aws_cloudfront_origins as origins
from aws_cdk import aws_s3 as s3
from aws_cdk import aws_s3_deployment as s3deploy
from constructs import Construct

from .constants import SPA_INDEX_DOCUMENT
from .environment import retention_for

# HSTS max-age of 18 months
HSTS_MAX_AGE = Duration.seconds(47304000)

# Cache TTL for the SPA fallback responses
SPA_FALLBACK_TTL = Duration.minutes(5)


class FrontendStack(Stack):
    """
    Stack hosting the built web application behind CloudFront.

    Attributes:
        log_bucket: Bucket receiving S3 and CloudFront logs.
        website_bucket: Private bucket holding the site.
        distribution: The CloudFront distribution.
        deployment: The asset deployment, or None when assets are skipped.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        build_output_path: str,
        with_assets: bool = True,
        **kwargs,
    ) -> None:
        """
        Initialize the FrontendStack.

        Args:
            scope: CDK app or stage scope.
            construct_id: Unique identifier for this stack.
            environment: Deployment environment id.
            build_output_path: Directory containing the built site.
            with_assets: Upload the built site and invalidate the CDN cache.
            **kwargs: Additional stack properties (env, description, etc.).
        """
        super().__init__(scope, construct_id, **kwargs)

        retention = retention_for(environment)
        bucket_prefix = construct_id.lower()

        # 1. Log bucket (CloudFront standard logging requires ACLs)
        self.log_bucket = s3.Bucket(
            self,
            "LogBucket",
            bucket_name=f"{bucket_prefix}-logs-{self.account}",
            encryption=s3.BucketEncryption.S3_MANAGED,
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            enforce_ssl=True,
            public_read_access=False,
            object_ownership=s3.ObjectOwnership.BUCKET_OWNER_PREFERRED,
            access_control=s3.BucketAccessControl.LOG_DELIVERY_WRITE,
            removal_policy=retention.removal_policy,
            auto_delete_objects=retention.auto_delete_objects,
            lifecycle_rules=[
                s3.LifecycleRule(
                    id="DeleteOldLogs",
                    enabled=True,
                    expiration=Duration.days(retention.log_expiration_days),
                )
            ],
        )

        # 2. Website bucket (private, served through origin access control)
        self.website_bucket = s3.Bucket(
            self,
            "WebsiteBucket",
            bucket_name=f"{bucket_prefix}-{self.account}",
            public_read_access=False,
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            removal_policy=RemovalPolicy.DESTROY,
            auto_delete_objects=True,
            encryption=s3.BucketEncryption.S3_MANAGED,
            enforce_ssl=True,
            versioned=False,
            server_access_logs_bucket=self.log_bucket,
            server_access_logs_prefix=f"s3/{environment}/",
        )

        # 3. Security headers
        security_headers = cloudfront.ResponseHeadersPolicy(
            self,
            "SecurityHeadersPolicy",
            security_headers_behavior=cloudfront.ResponseSecurityHeadersBehavior(
                content_type_options=cloudfront.ResponseHeadersContentTypeOptions(override=True),
                frame_options=cloudfront.ResponseHeadersFrameOptions(
                    frame_option=cloudfront.HeadersFrameOption.DENY,
                    override=True,
                ),
                strict_transport_security=cloudfront.ResponseHeadersStrictTransportSecurity(
                    access_control_max_age=HSTS_MAX_AGE,
                    include_subdomains=True,
                    override=True,
                ),
            ),
            custom_headers_behavior=cloudfront.ResponseCustomHeadersBehavior(
                custom_headers=[
                    cloudfront.ResponseCustomHeader(
                        header="Cache-Control",
                        value="no-store, no-cache",
                        override=True,
                    )
                ]
            ),
        )

        # 4. Distribution with SPA fallback for client-side routes; the origin access
        # control adds the bucket policy statement scoped to this distribution
        self.distribution = cloudfront.Distribution(
            self,
            "Distribution",
            comment=f"{construct_id} - {environment}",
            default_behavior=cloudfront.BehaviorOptions(
                origin=origins.S3BucketOrigin.with_origin_access_control(self.website_bucket),
                viewer_protocol_policy=cloudfront.ViewerProtocolPolicy.REDIRECT_TO_HTTPS,
                allowed_methods=cloudfront.AllowedMethods.ALLOW_GET_HEAD_OPTIONS,
                cached_methods=cloudfront.CachedMethods.CACHE_GET_HEAD_OPTIONS,
                cache_policy=cloudfront.CachePolicy.CACHING_OPTIMIZED,
                compress=True,
                response_headers_policy=security_headers,
            ),
            default_root_object=SPA_INDEX_DOCUMENT,
            error_responses=[
                cloudfront.ErrorResponse(
                    http_status=status,
                    response_http_status=200,
                    response_page_path=f"/{SPA_INDEX_DOCUMENT}",
                    ttl=SPA_FALLBACK_TTL,
                )
                for status in (403, 404)
            ],
            price_class=cloudfront.PriceClass.PRICE_CLASS_100,
            enable_ipv6=True,
            http_version=cloudfront.HttpVersion.HTTP2_AND_3,
            minimum_protocol_version=cloudfront.SecurityPolicyProtocol.TLS_V1_2_2021,
            enable_logging=True,
            log_bucket=self.log_bucket,
            log_file_prefix=f"cloudfront/{environment}/",
            log_includes_cookies=False,
        )

        # 5. Site upload (skippable so infrastructure can exist before a build)
        self.deployment = None
        if with_assets:
            self.deployment = s3deploy.BucketDeployment(
                self,
                "DeployWebsite",
                sources=[s3deploy.Source.asset(build_output_path)],
                destination_bucket=self.website_bucket,
                distribution=self.distribution,
                distribution_paths=["/*"],
                prune=True,
                memory_limit=512,
            )

        # Outputs
        CfnOutput(
            self,
            "WebsiteURL",
            value=f"https://{self.distribution.distribution_domain_name}",
            description="CloudFront distribution URL",
            export_name=f"{construct_id}-WebsiteURL",
        )

        CfnOutput(
            self,
            "BucketName",
            value=self.website_bucket.bucket_name,
            description="S3 bucket name",
            export_name=f"{construct_id}-BucketName",
        )

        CfnOutput(
            self,
            "DistributionId",
            value=self.distribution.distribution_id,
            description="CloudFront distribution ID",
            export_name=f"{construct_id}-DistributionId",
        )

        CfnOutput(
            self,
            "DistributionDomainName",
            value=self.distribution.distribution_domain_name,
            description="CloudFront domain name",
            export_name=f"{construct_id}-DistributionDomain",
        )

        CfnOutput(
            self,
            "LogBucketName",
            value=self.log_bucket.bucket_name,
            description="Bucket for logs",
            export_name=f"{construct_id}-LogBucket",
        )

        Tags.of(self).add("Stack", "Frontend")
