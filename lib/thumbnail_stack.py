"""
Thumbnail Stack - S3 upload-triggered image resizing

This stack creates:
- S3 bucket for source images
- S3 bucket for thumbnails ("<source>-resized")
- IAM role with read access to the source and write access to the thumbnails
- Lambda layers for Pillow and the shared helper modules
- Thumbnail resizer Lambda function
- S3 event trigger (ObjectCreated on the source bucket)
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
    aws_s3_notifications as s3n,
    aws_logs as logs,
)
from constructs import Construct
import json

from config.constants import (
    DEFAULT_SOURCE_BUCKET,
    DESTINATION_BUCKET_SUFFIX,
    SUPPORTED_IMAGE_EXTENSIONS,
    THUMBNAIL_WIDTH,
)


class ThumbnailStack(Stack):
    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Load configuration
        config = self._load_config()
        source_bucket_name = config["buckets"]["source_bucket"]

        # Create S3 bucket for uploaded images
        self.source_bucket = s3.Bucket(
            self,
            "SourceBucket",
            bucket_name=source_bucket_name,
            removal_policy=RemovalPolicy.DESTROY,
            auto_delete_objects=True,
            versioned=False,
        )

        # The resizer derives this name from the source bucket at runtime,
        # so it must not be configured independently
        self.destination_bucket = s3.Bucket(
            self,
            "DestinationBucket",
            bucket_name=f"{source_bucket_name}{DESTINATION_BUCKET_SUFFIX}",
            removal_policy=RemovalPolicy.DESTROY,
            auto_delete_objects=True,
            versioned=False,
        )

        # Create IAM role for the resizer
        lambda_role = self._create_lambda_role()

        # Thumbnail resizer
        self.resizer_lambda = self._create_resizer_lambda(lambda_role, config)

        # Add S3 event notification to trigger the resizer
        self._setup_s3_trigger()

        CfnOutput(
            self,
            "SourceBucketName",
            value=self.source_bucket.bucket_name,
            description="Upload .jpg/.png images here",
        )
        CfnOutput(
            self,
            "DestinationBucketName",
            value=self.destination_bucket.bucket_name,
            description="Thumbnails are written here as resized-<key>",
        )
        CfnOutput(
            self,
            "ResizerFunctionName",
            value=self.resizer_lambda.function_name,
            description="Lambda function to invoke with a test event",
        )

    def _load_config(self) -> dict:
        """Load configuration from context or use defaults"""
        env = self.node.try_get_context("environment") or "dev"
        config_path = f"config/{env}.json"

        try:
            with open(config_path, "r") as f:
                return json.load(f)
        except FileNotFoundError:
            # Return default config
            return {
                "buckets": {
                    "source_bucket": DEFAULT_SOURCE_BUCKET,
                },
                "function": {
                    "timeout_seconds": 30,
                    "memory_size": 512,
                },
            }

    def _create_lambda_role(self) -> iam.Role:
        """Create IAM role: read source objects, write thumbnails, write logs"""
        role = iam.Role(
            self,
            "ResizerLambdaRole",
            assumed_by=iam.ServicePrincipal("lambda.amazonaws.com"),
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name(
                    "service-role/AWSLambdaBasicExecutionRole"
                )
            ],
        )

        role.add_to_policy(
            iam.PolicyStatement(
                actions=["s3:GetObject"],
                resources=[f"{self.source_bucket.bucket_arn}/*"],
            )
        )

        role.add_to_policy(
            iam.PolicyStatement(
                actions=["s3:PutObject"],
                resources=[f"{self.destination_bucket.bucket_arn}/*"],
            )
        )

        return role

    def _create_resizer_lambda(
        self, role: iam.Role, config: dict
    ) -> lambda_.Function:
        """Create the thumbnail resizer Lambda"""

        # Pillow is installed for the Lambda runtime inside the bundling image
        pillow_layer = lambda_.LayerVersion(
            self,
            "PillowLayer",
            code=lambda_.Code.from_asset(
                "lambda/layers/pillow",
                bundling=BundlingOptions(
                    image=lambda_.Runtime.PYTHON_3_11.bundling_image,
                    command=[
                        "bash", "-c",
                        "pip install -r requirements.txt -t /asset-output/python",
                    ],
                ),
            ),
            compatible_runtimes=[lambda_.Runtime.PYTHON_3_11],
            description="Pillow for image decoding and resizing",
        )

        # Shared helpers end up under /opt/python
        shared_layer = lambda_.LayerVersion(
            self,
            "SharedLayer",
            code=lambda_.Code.from_asset(
                "lambda/shared",
                bundling=BundlingOptions(
                    image=lambda_.Runtime.PYTHON_3_11.bundling_image,
                    command=[
                        "bash", "-c",
                        "mkdir -p /asset-output/python && cp /asset-input/*.py /asset-output/python/",
                    ],
                ),
            ),
            compatible_runtimes=[lambda_.Runtime.PYTHON_3_11],
            description="Shared naming and image helpers",
        )

        function_config = config.get("function", {})

        return lambda_.Function(
            self,
            "ResizerFunction",
            runtime=lambda_.Runtime.PYTHON_3_11,
            handler="index.handler",
            code=lambda_.Code.from_asset("lambda/thumbnail/resizer"),
            layers=[pillow_layer, shared_layer],
            role=role,
            timeout=Duration.seconds(function_config.get("timeout_seconds", 30)),
            memory_size=function_config.get("memory_size", 512),
            log_retention=logs.RetentionDays.THREE_DAYS,  # Auto-delete logs after 3 days
            description=(
                f"Resizes {'/'.join(SUPPORTED_IMAGE_EXTENSIONS)} uploads to "
                f"{THUMBNAIL_WIDTH}px wide thumbnails"
            ),
        )

    def _setup_s3_trigger(self):
        """Setup S3 event notification to invoke the resizer"""
        # No suffix filter: S3 filters are case-sensitive, the resizer
        # matches extensions case-insensitively itself
        self.source_bucket.add_event_notification(
            s3.EventType.OBJECT_CREATED,
            s3n.LambdaDestination(self.resizer_lambda),
        )
