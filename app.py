#!/usr/bin/env python3
"""
Image Pipeline CDK Application

This app defines the infrastructure for the image versions pipeline:
one Lambda that fetches an image from S3, derives resized versions and
uploads them back.
"""

import aws_cdk as cdk
from lib.image_pipeline_stack import ImagePipelineStack

app = cdk.App()

# Get environment configuration
env = cdk.Environment(
    account=app.node.try_get_context("account"),
    region=app.node.try_get_context("region") or "us-east-1"
)

ImagePipelineStack(
    app,
    "ImagePipelineStack",
    env=env,
    description="Image Pipeline - fetch, derive versions, upload"
)

app.synth()
