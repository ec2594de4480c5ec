"""
Shared constants for the S3 thumbnail demo project
"""

# Thumbnail output width in pixels (height follows the aspect ratio)
THUMBNAIL_WIDTH = 200

# Supported file types (matched on the lowercased extension)
SUPPORTED_IMAGE_EXTENSIONS = ['jpg', 'png']

# Destination naming convention
DESTINATION_BUCKET_SUFFIX = "-resized"
DESTINATION_KEY_PREFIX = "resized-"

# Source bucket used when no config/<env>.json is present
DEFAULT_SOURCE_BUCKET = "thumbnail-demo-source"
