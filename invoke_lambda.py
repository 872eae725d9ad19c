#!/usr/bin/env python3
"""
Quick script to invoke the deployed image processor and see detailed errors
"""

import boto3
import json
import os
import sys

FUNCTION_NAME = os.environ.get("IMAGE_PROCESSOR_FUNCTION", "image-pipeline-dev-processor")


def invoke(bucket, key, prefix, mode="fit", versions=None):
    """Invoke the Lambda synchronously and print the response"""
    payload = {
        "processing_mode": mode,
        "source_bucket": bucket,
        "source_key": key,
        "destination_prefix": prefix,
        "versions": versions if versions is not None else [{"width": 800}, {"width": 400}, {"width": 80}],
    }

    print(f"\n🖼  Processing s3://{bucket}/{key} -> {prefix} ({mode})")
    print(f"   Function: {FUNCTION_NAME}")
    print("-" * 60)

    client = boto3.client("lambda")
    response = client.invoke(
        FunctionName=FUNCTION_NAME,
        InvocationType="RequestResponse",
        Payload=json.dumps(payload).encode("utf-8"),
    )

    body = json.loads(response["Payload"].read())
    if "FunctionError" in response:
        print(f"❌ {body.get('errorType')}: {body.get('errorMessage')}")
    else:
        print(f"✓ Primary version: {body['data']['key']}")

    print(f"\nResponse Body:")
    print(json.dumps(body, indent=2))
    return body


if __name__ == "__main__":
    if len(sys.argv) < 4:
        print("Usage: invoke_lambda.py <bucket> <key> <destination_prefix> [fit|fill]")
        sys.exit(1)

    invoke(*sys.argv[1:5])
