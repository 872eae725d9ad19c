"""
Lambda: Image Processor

Invoked directly (or from Step Functions) with one image to process:
- Validates the request before touching disk or S3
- Downloads the source image into a per-invocation workspace
- Derives the requested versions with the selected engine
- Uploads every version back to S3 (public-read, 180 day cache)
- Removes the workspace on every exit path
- Returns the key of the primary version
"""

import json
import os

import boto3

from image_pipeline import (
    ImagePipeline,
    PipelineError,
    S3ObjectStore,
    get_config,
    set_config,
)

# Initialize clients
s3_client = boto3.client('s3')

# Environment variables
WORKSPACE_ROOT = os.environ.get('WORKSPACE_ROOT')

# Cold start configuration, applied before any invocation runs
if WORKSPACE_ROOT:
    set_config({'workspace_root': WORKSPACE_ROOT})

print(f"Lambda initialized - workspace_root: {get_config().workspace_root}")

pipeline = ImagePipeline(store=S3ObjectStore(s3_client), config=get_config())


def configure(options):
    """
    Override pipeline settings before invocations start.

    Args:
        options: {'workspace_root': str} (field optional)

    Returns:
        The configuration now in effect
    """
    global pipeline

    config = set_config(options)
    pipeline = ImagePipeline(store=S3ObjectStore(s3_client), config=config)
    return config


def handler(event, context):
    """
    Main handler for Image Processor Lambda

    Args:
        event: {
            "processing_mode": "fit" | "fill",
            "source_bucket": "...",
            "source_key": "uploads/photo.jpg",
            "destination_prefix": "out/2024",
            "versions": [{"width": 400}, ...]
        }
        context: Lambda context

    Returns:
        {"data": {"key": "out/2024/photo_aspR_..._e.jpg"}}

    Raises:
        PipelineError: re-raised so the Lambda runtime reports the failure
    """
    request_id = getattr(context, 'aws_request_id', None)
    print(f"Processing request {request_id}: {json.dumps(event, default=str)}")

    try:
        return pipeline.invoke(event)
    except PipelineError as e:
        print(f"Error processing image: {e}")
        raise
