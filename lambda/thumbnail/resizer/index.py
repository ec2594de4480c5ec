"""
Lambda: Thumbnail Resizer

Triggered directly by S3 ObjectCreated notifications on the source bucket.
- Decodes the object key from the first notification record
- Skips keys without an extension or with an unsupported type
- Downloads the image, resizes it to a fixed 200px width (aspect ratio kept)
- Uploads the thumbnail as "resized-<key>" to the "<bucket>-resized" bucket

Failures are logged and reported in the return payload, never raised, so
S3 never redelivers the event.
"""

import os
import sys
import traceback
from dataclasses import dataclass
from typing import Dict, Any, Optional
from urllib.parse import unquote_plus

import boto3
from botocore.exceptions import BotoCoreError, ClientError

# Add shared utilities to path
sys.path.insert(0, '/opt/python')  # Lambda layer path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../../shared'))

from image_utils import ImageProcessingError, content_type_for, output_format_for, resize_to_width
from naming import derive_destination_bucket, derive_destination_key, infer_extension

# Initialize client once per container, reused across invocations
s3_client = boto3.client('s3')

TARGET_WIDTH = 200
SUPPORTED_EXTENSIONS = {'jpg', 'png'}

# Result statuses
STATUS_WRITTEN = 'WRITTEN'
STATUS_SKIPPED = 'SKIPPED'
STATUS_FAILED = 'FAILED'

# Skip reasons
NO_EXTENSION = 'NO_EXTENSION'
UNSUPPORTED_TYPE = 'UNSUPPORTED_TYPE'

# Error kinds
INVALID_KEY = 'INVALID_KEY'
FETCH_FAILED = 'FETCH_FAILED'
DECODE_OR_RESIZE_FAILED = 'DECODE_OR_RESIZE_FAILED'
STORE_FAILED = 'STORE_FAILED'
UNEXPECTED_ERROR = 'UNEXPECTED_ERROR'


class TransformError(Exception):
    """A failed step of the transform, tagged with its error kind"""

    def __init__(self, kind: str, message: str):
        super().__init__(message)
        self.kind = kind


@dataclass
class UploadNotification:
    bucket: str
    raw_key: str


@dataclass
class TransformResult:
    """Outcome of one invocation: WRITTEN, SKIPPED (by design) or FAILED"""
    status: str
    source_bucket: Optional[str] = None
    source_key: Optional[str] = None
    destination_bucket: Optional[str] = None
    destination_key: Optional[str] = None
    reason: Optional[str] = None
    error_kind: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def written(cls, source_bucket, source_key, destination_bucket, destination_key):
        return cls(STATUS_WRITTEN, source_bucket, source_key, destination_bucket, destination_key)

    @classmethod
    def skipped(cls, reason, source_bucket=None, source_key=None):
        return cls(STATUS_SKIPPED, source_bucket, source_key, reason=reason)

    @classmethod
    def failed(cls, error_kind, error, source_bucket=None, source_key=None,
               destination_bucket=None, destination_key=None):
        return cls(STATUS_FAILED, source_bucket, source_key, destination_bucket,
                   destination_key, error_kind=error_kind, error=error)

    def to_response(self) -> Dict[str, Any]:
        """Handler payload. statusCode is always 200 so the event is never retried."""
        response = {
            'statusCode': 200,
            'status': self.status,
            'sourceBucket': self.source_bucket,
            'sourceKey': self.source_key,
        }
        if self.status == STATUS_WRITTEN:
            response['destinationBucket'] = self.destination_bucket
            response['destinationKey'] = self.destination_key
        elif self.status == STATUS_SKIPPED:
            response['reason'] = self.reason
        else:
            response['errorKind'] = self.error_kind
            response['error'] = self.error
        return response


def handler(event, context):
    """
    Main handler for the Thumbnail Resizer Lambda

    Args:
        event: S3 event notification envelope
        context: Lambda context

    Returns:
        Dict with statusCode 200 and the transform status
    """
    try:
        notification = parse_notification(event)
    except TransformError as e:
        print(f"Error reading S3 notification: {e}")
        return TransformResult.failed(e.kind, str(e)).to_response()

    try:
        result = process(notification, s3_client)
    except Exception as e:
        # Never raise to the platform
        print(f"Unexpected error processing {notification.bucket}/{notification.raw_key}: {e}")
        traceback.print_exc()
        result = TransformResult.failed(UNEXPECTED_ERROR, str(e), notification.bucket)

    return result.to_response()


def parse_notification(event: Dict[str, Any]) -> UploadNotification:
    """
    Extract bucket and raw (still encoded) key from the first record.

    Raises:
        TransformError(INVALID_KEY): the envelope has no usable record
    """
    try:
        records = event['Records']
        record = records[0]
        bucket = record['s3']['bucket']['name']
        raw_key = record['s3']['object']['key']
    except (KeyError, IndexError, TypeError) as e:
        raise TransformError(INVALID_KEY, f"Malformed S3 event, missing {e}")

    if not isinstance(bucket, str) or not bucket:
        raise TransformError(INVALID_KEY, f"Malformed S3 event, invalid bucket name {bucket!r}")

    if len(records) > 1:
        print(f"Received {len(records)} records, processing only the first")

    return UploadNotification(bucket=bucket, raw_key=raw_key)


def decode_key(raw_key: str) -> str:
    """
    Decode an S3 event key: '+' becomes a space, then percent-escapes are
    decoded as UTF-8.
    """
    try:
        return unquote_plus(raw_key, errors='strict')
    except (UnicodeDecodeError, TypeError) as e:
        raise TransformError(INVALID_KEY, f"Could not decode key {raw_key!r}: {e}")


def process(notification: UploadNotification, client) -> TransformResult:
    """
    Run the transform pipeline for one upload notification.

    Args:
        notification: Bucket and raw key of the uploaded object
        client: boto3 S3 client used for both fetch and store

    Returns:
        TransformResult describing what happened; never raises for
        the expected failure kinds
    """
    bucket = notification.bucket

    try:
        key = decode_key(notification.raw_key)
    except TransformError as e:
        print(f"Error decoding key: {e}")
        return TransformResult.failed(e.kind, str(e), bucket)

    destination_bucket = derive_destination_bucket(bucket)
    destination_key = derive_destination_key(key)

    extension = infer_extension(key)
    if extension is None:
        print(f"Could not determine the image type of {key}, skipping")
        return TransformResult.skipped(NO_EXTENSION, bucket, key)

    if extension not in SUPPORTED_EXTENSIONS:
        print(f"Unsupported image type: {extension}, skipping {key}")
        return TransformResult.skipped(UNSUPPORTED_TYPE, bucket, key)

    try:
        image_bytes = fetch_object(client, bucket, key)
        image_format = output_format_for(extension)
        thumbnail = create_thumbnail(image_bytes, image_format)
        store_thumbnail(client, destination_bucket, destination_key, thumbnail, image_format)
    except TransformError as e:
        print(f"Error processing {bucket}/{key}: {e}")
        return TransformResult.failed(
            e.kind, str(e), bucket, key, destination_bucket, destination_key
        )

    print(f"Successfully resized {bucket}/{key} and uploaded to {destination_bucket}/{destination_key}")
    return TransformResult.written(bucket, key, destination_bucket, destination_key)


def fetch_object(client, bucket: str, key: str) -> bytes:
    """Download the source object body"""
    try:
        response = client.get_object(Bucket=bucket, Key=key)
        return response['Body'].read()
    except (ClientError, BotoCoreError) as e:
        raise TransformError(FETCH_FAILED, f"Could not fetch s3://{bucket}/{key}: {e}")


def create_thumbnail(image_bytes: bytes, image_format: str) -> bytes:
    """Resize to TARGET_WIDTH, keeping the source format"""
    try:
        return resize_to_width(image_bytes, TARGET_WIDTH, image_format)
    except ImageProcessingError as e:
        raise TransformError(DECODE_OR_RESIZE_FAILED, str(e))


def store_thumbnail(client, bucket: str, key: str, body: bytes, image_format: str) -> None:
    """Upload the thumbnail with its content type"""
    try:
        client.put_object(
            Bucket=bucket,
            Key=key,
            Body=body,
            ContentType=content_type_for(image_format)
        )
    except (ClientError, BotoCoreError) as e:
        raise TransformError(STORE_FAILED, f"Could not store s3://{bucket}/{key}: {e}")
