"""
Image Pipeline Stack - single Lambda that derives image versions

This stack creates:
- S3 bucket for source images and derived versions
- IAM role with read/write access to the bucket
- Image processor Lambda function (pipeline package bundled in a layer)
"""

from aws_cdk import (
    Stack,
    Duration,
    RemovalPolicy,
    BundlingOptions,
    CfnOutput,
    aws_s3 as s3,
    aws_lambda as lambda_,
    aws_iam as iam,
    aws_logs as logs,
)
from constructs import Construct
import json


class ImagePipelineStack(Stack):
    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Load configuration
        config = self._load_config()

        # Derived versions are uploaded with a public-read ACL, so the bucket
        # must allow ACLs and not block public ones
        self.image_bucket = s3.Bucket(
            self,
            "ImageBucket",
            bucket_name=config["buckets"]["image_bucket"],
            removal_policy=RemovalPolicy.DESTROY,
            auto_delete_objects=True,
            versioned=False,
            object_ownership=s3.ObjectOwnership.BUCKET_OWNER_PREFERRED,
            block_public_access=s3.BlockPublicAccess(
                block_public_acls=False,
                ignore_public_acls=False,
                block_public_policy=True,
                restrict_public_buckets=True,
            ),
        )

        role = self._create_lambda_role()
        self.processor_lambda = self._create_processor_lambda(role, config)

        CfnOutput(
            self,
            "ProcessorFunctionName",
            value=self.processor_lambda.function_name,
            description="Invoke with {processing_mode, source_bucket, source_key, destination_prefix, versions}",
        )

    def _load_config(self) -> dict:
        """Load configuration from context or use defaults"""
        env = self.node.try_get_context("environment") or "dev"
        config_path = f"config/{env}.json"

        try:
            with open(config_path, "r") as f:
                return json.load(f)
        except FileNotFoundError:
            return {
                "buckets": {
                    "image_bucket": "image-pipeline-images",
                },
                "lambda": {
                    "function_name": "image-pipeline-processor",
                    "memory_size": 1536,
                    "timeout_seconds": 120,
                    "workspace_root": "/tmp/images/",
                },
            }

    def _create_lambda_role(self) -> iam.Role:
        """Create IAM role with access to the image bucket"""
        role = iam.Role(
            self,
            "ImageProcessorRole",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name(
                    "service-role/AWSLambdaBasicExecutionRole"
                )
            ],
        )

        # PutObjectAcl is needed for the public-read ACL on uploads
        role.add_to_policy(
            iam.PolicyStatement(
                actions=[
                    "s3:GetObject",
                    "s3:PutObject",
                    "s3:PutObjectAcl",
                    "s3:ListBucket",
                ],
                resources=[
                    self.image_bucket.bucket_arn,
                    f"{self.image_bucket.bucket_arn}/*",
                ],
            )
        )

        return role

    def _create_processor_lambda(
        self, role: iam.Role, config: dict
    ) -> lambda_.Function:
        """Create the image processor Lambda"""

        # Pipeline package plus Pillow and pydantic, built for the Lambda runtime
        pipeline_layer = lambda_.LayerVersion(
            self,
            "ImagePipelineLayer",
            code=lambda_.Code.from_asset(
                ".",
                exclude=["cdk.out", "tests", ".venv", "*.pyc"],
                bundling=BundlingOptions(
                    image=lambda_.Runtime.PYTHON_3_11.bundling_image,
                    command=[
                        "bash",
                        "-c",
                        "pip install . -t /asset-output/python",
                    ],
                ),
            ),
            compatible_runtimes=[lambda_.Runtime.PYTHON_3_11],
            description="image_pipeline with Pillow and pydantic",
        )

        return lambda_.Function(
            self,
            "ImageProcessorFunction",
            function_name=config["lambda"]["function_name"],
            runtime=lambda_.Runtime.PYTHON_3_11,
            handler="index.handler",
            code=lambda_.Code.from_asset("lambda/image_processor"),
            layers=[pipeline_layer],
            role=role,
            timeout=Duration.seconds(config["lambda"]["timeout_seconds"]),
            memory_size=config["lambda"]["memory_size"],  # Pillow decodes full images in memory
            log_retention=logs.RetentionDays.THREE_DAYS,
            environment={
                "WORKSPACE_ROOT": config["lambda"]["workspace_root"],
            },
        )
