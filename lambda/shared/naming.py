"""
Shared naming helpers for the thumbnail pipeline

The destination of every thumbnail is derived from its source:
    bucket  ->  bucket + "-resized"
    key     ->  "resized-" + key
"""

from typing import Optional

DESTINATION_BUCKET_SUFFIX = "-resized"
DESTINATION_KEY_PREFIX = "resized-"


def derive_destination_bucket(source_bucket: str) -> str:
    """Return the bucket that receives thumbnails for source_bucket"""
    if not source_bucket:
        raise ValueError("Source bucket name must not be empty")
    return f"{source_bucket}{DESTINATION_BUCKET_SUFFIX}"


def derive_destination_key(source_key: str) -> str:
    """Return the thumbnail key for a (decoded) source key"""
    return f"{DESTINATION_KEY_PREFIX}{source_key}"


def infer_extension(key: str) -> Optional[str]:
    """
    Infer the file type from an object key.

    Returns the lowercased substring after the last '.', or None when the
    key has no '.' at all (e.g. folder markers).
    """
    if '.' not in key:
        return None
    return key.rsplit('.', 1)[1].lower()
