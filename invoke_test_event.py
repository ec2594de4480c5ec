#!/usr/bin/env python3
"""
Quick test script for the deployed thumbnail resizer

Builds the same ObjectCreated:Put event S3 would send, optionally uploads a
generated sample image first, invokes the function synchronously and
prints the returned payload.

Usage:
    python invoke_test_event.py <function-name> --bucket <source-bucket> --key HappyFace.jpg --upload
"""

import argparse
import json
import sys
from datetime import datetime, timezone
from io import BytesIO
from urllib.parse import quote_plus

import boto3
from botocore.exceptions import ClientError
from PIL import Image

from config.constants import (
    DEFAULT_SOURCE_BUCKET,
    DESTINATION_BUCKET_SUFFIX,
    DESTINATION_KEY_PREFIX,
)

SAMPLE_FORMATS = {
    'jpg': ('JPEG', 'image/jpeg'),
    'png': ('PNG', 'image/png'),
}


def build_test_event(bucket, key, size=0, region="us-east-1"):
    """
    Build an S3 ObjectCreated:Put notification for bucket/key.

    The key is URL-encoded the way S3 encodes it in event payloads
    (spaces become '+').
    """
    return {
        "Records": [
            {
                "eventVersion": "2.1",
                "eventSource": "aws:s3",
                "awsRegion": region,
                "eventTime": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z"),
                "eventName": "ObjectCreated:Put",
                "userIdentity": {"principalId": "EXAMPLE"},
                "requestParameters": {"sourceIPAddress": "127.0.0.1"},
                "responseElements": {
                    "x-amz-request-id": "EXAMPLE123456789",
                    "x-amz-id-2": "EXAMPLE123/5678abcdefghijklambdaisawesome/mnopqrstuvwxyzABCDEFGH"
                },
                "s3": {
                    "s3SchemaVersion": "1.0",
                    "configurationId": "testConfigRule",
                    "bucket": {
                        "name": bucket,
                        "ownerIdentity": {"principalId": "EXAMPLE"},
                        "arn": f"arn:aws:s3:::{bucket}"
                    },
                    "object": {
                        "key": quote_plus(key, safe='/'),
                        "size": size,
                        "eTag": "0123456789abcdef0123456789abcdef",
                        "sequencer": "0A1B2C3D4E5F678901"
                    }
                }
            }
        ]
    }


def make_sample_image(extension, width=640, height=480):
    """Render a solid-color sample image and return (bytes, content type)"""
    image_format, content_type = SAMPLE_FORMATS[extension.lower()]
    image = Image.new('RGB', (width, height), color=(70, 130, 180))
    buffer = BytesIO()
    image.save(buffer, format=image_format)
    return buffer.getvalue(), content_type


def upload_sample_image(s3_client, bucket, key, width=640, height=480):
    """Upload a generated sample image to bucket/key, returns its size in bytes"""
    extension = key.rsplit('.', 1)[-1]
    body, content_type = make_sample_image(extension, width, height)
    s3_client.put_object(Bucket=bucket, Key=key, Body=body, ContentType=content_type)
    print(f"Uploaded {width}x{height} sample image to s3://{bucket}/{key}")
    return len(body)


def invoke_function(lambda_client, function_name, event):
    """Invoke the function synchronously and return the decoded payload"""
    response = lambda_client.invoke(
        FunctionName=function_name,
        InvocationType='RequestResponse',
        Payload=json.dumps(event).encode('utf-8'),
    )
    payload = json.loads(response['Payload'].read())

    if 'FunctionError' in response:
        print(f"Function error ({response['FunctionError']}): {json.dumps(payload)}")

    return payload


def check_thumbnail(s3_client, bucket, key):
    """Print the size of the expected thumbnail object, if it exists"""
    destination_bucket = f"{bucket}{DESTINATION_BUCKET_SUFFIX}"
    destination_key = f"{DESTINATION_KEY_PREFIX}{key}"

    try:
        head = s3_client.head_object(Bucket=destination_bucket, Key=destination_key)
    except ClientError as e:
        print(f"Thumbnail not found at s3://{destination_bucket}/{destination_key}: {e}")
        return False

    print(f"Thumbnail s3://{destination_bucket}/{destination_key} "
          f"({head['ContentLength']} bytes, {head.get('ContentType', 'unknown')})")
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="Invoke the thumbnail resizer with an S3 test event")
    parser.add_argument("function_name", help="Name of the deployed resizer function")
    parser.add_argument("--bucket", default=DEFAULT_SOURCE_BUCKET, help="Source bucket name")
    parser.add_argument("--key", default="HappyFace.jpg", help="Object key (unencoded)")
    parser.add_argument("--region", default="us-east-1")
    parser.add_argument("--upload", action="store_true", help="Upload a generated sample image first")
    parser.add_argument("--event-only", action="store_true", help="Print the event and exit")
    args = parser.parse_args(argv)

    size = 0
    if args.upload and not args.event_only:
        s3_client = boto3.client('s3', region_name=args.region)
        size = upload_sample_image(s3_client, args.bucket, args.key)

    event = build_test_event(args.bucket, args.key, size=size, region=args.region)

    if args.event_only:
        print(json.dumps(event, indent=2))
        return 0

    print(f"\n🔍 Invoking {args.function_name} for s3://{args.bucket}/{args.key}")
    print("-" * 60)

    lambda_client = boto3.client('lambda', region_name=args.region)
    payload = invoke_function(lambda_client, args.function_name, event)
    print(json.dumps(payload, indent=2))

    if payload.get('status') == 'WRITTEN':
        check_thumbnail(boto3.client('s3', region_name=args.region), args.bucket, args.key)
        return 0

    return 1


if __name__ == "__main__":
    sys.exit(main())
