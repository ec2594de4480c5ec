"""
Unit tests for the Thumbnail CDK stack
"""

import pytest
import sys
import os

import aws_cdk as cdk
from aws_cdk.assertions import Match, Template

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '../..'))

# Add project root to path
sys.path.insert(0, PROJECT_ROOT)

from lib.thumbnail_stack import ThumbnailStack


@pytest.fixture(scope="module")
def template():
    """Synthesize the stack once, without Docker bundling"""
    cwd = os.getcwd()
    os.chdir(PROJECT_ROOT)  # asset and config paths are relative to the project root
    try:
        app = cdk.App(context={"aws:cdk:bundling-stacks": []})
        stack = ThumbnailStack(app, "TestThumbnailStack")
        return Template.from_stack(stack)
    finally:
        os.chdir(cwd)


class TestBuckets:
    """Tests for the source and destination buckets"""

    def test_source_bucket(self, template):
        template.has_resource_properties("AWS::S3::Bucket", {
            "BucketName": "thumbnail-demo-source"
        })

    def test_destination_bucket_is_derived(self, template):
        template.has_resource_properties("AWS::S3::Bucket", {
            "BucketName": "thumbnail-demo-source-resized"
        })

    def test_two_buckets(self, template):
        template.resource_count_is("AWS::S3::Bucket", 2)


class TestResizerFunction:
    """Tests for the resizer Lambda function"""

    def test_function_properties(self, template):
        template.has_resource_properties("AWS::Lambda::Function", {
            "Handler": "index.handler",
            "Runtime": "python3.11",
            "Timeout": 30,
            "MemorySize": 512,
            "Layers": Match.any_value(),
        })

    def test_layers(self, template):
        template.resource_count_is("AWS::Lambda::LayerVersion", 2)
        template.has_resource_properties("AWS::Lambda::LayerVersion", {
            "Description": "Pillow for image decoding and resizing",
            "CompatibleRuntimes": ["python3.11"],
        })

    def test_s3_trigger(self, template):
        template.has_resource_properties("Custom::S3BucketNotifications", {
            "NotificationConfiguration": {
                "LambdaFunctionConfigurations": [
                    Match.object_like({"Events": ["s3:ObjectCreated:*"]})
                ]
            }
        })

    def test_s3_can_invoke(self, template):
        template.has_resource_properties("AWS::Lambda::Permission", {
            "Action": "lambda:InvokeFunction",
            "Principal": "s3.amazonaws.com",
        })


class TestRole:
    """Tests for the resizer IAM role"""

    def test_assumed_by_lambda(self, template):
        template.has_resource_properties("AWS::IAM::Role", {
            "AssumeRolePolicyDocument": {
                "Statement": [
                    Match.object_like({
                        "Principal": {"Service": "lambda.amazonaws.com"}
                    })
                ]
            }
        })

    def test_read_and_write_permissions(self, template):
        template.has_resource_properties("AWS::IAM::Policy", {
            "PolicyDocument": {
                "Statement": Match.array_with([
                    Match.object_like({"Action": "s3:GetObject", "Effect": "Allow"}),
                    Match.object_like({"Action": "s3:PutObject", "Effect": "Allow"}),
                ])
            }
        })


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
