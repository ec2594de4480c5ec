#!/usr/bin/env python3
"""
S3 Thumbnail Demo CDK Application

This app defines the infrastructure for the upload-triggered thumbnail
demo: every .jpg/.png uploaded to the source bucket is resized to a
200px wide thumbnail in the "<source>-resized" bucket.
"""

import aws_cdk as cdk
from lib.thumbnail_stack import ThumbnailStack

app = cdk.App()

# Get environment configuration
env = cdk.Environment(
    account=app.node.try_get_context("account"),
    region=app.node.try_get_context("region") or "us-east-1"
)

ThumbnailStack(
    app,
    "S3ThumbnailStack",
    env=env,
    description="S3 Thumbnail Demo - Upload-triggered image resizing"
)

app.synth()
