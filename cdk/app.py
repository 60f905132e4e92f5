#!/usr/bin/env python3
"""
CDK app for IronmanCountdown infrastructure.

Stacks, per invocation:

    IronmanCountdownFrontend-<env> - S3 + CloudFront static hosting
    IronmanCountdownApi-<env>      - Lambda functions behind API Gateway
    IronmanCountdownPipelineStack  - CodePipeline (only with codeConnectionArn)

Usage:
    # Application stacks for a preview environment
    cdk deploy --all --context environment="preview-alice"

    # Infrastructure only, before the UI has been built
    cdk deploy --all --context withAssets=false

    # Pipeline only
    cdk deploy IronmanCountdownPipelineStack \\
        --context pipelineOnly=true \\
        --context codeConnectionArn="arn:aws:codeconnections:..."
"""

import logging
import os

import aws_cdk as cdk
from stacks import compose

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = cdk.App()

compose(app, os.environ)

app.synth()
