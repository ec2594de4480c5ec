"""
Shared utilities for thumbnail generation (Pillow)
"""

import struct
from io import BytesIO
from typing import Tuple

from PIL import Image

# Output encoding per supported extension
OUTPUT_FORMATS = {
    'jpg': 'JPEG',
    'png': 'PNG',
}

CONTENT_TYPES = {
    'JPEG': 'image/jpeg',
    'PNG': 'image/png',
}

JPEG_QUALITY = 85

# Modes Pillow can write as JPEG without conversion
JPEG_MODES = ('RGB', 'L', 'CMYK')


class ImageProcessingError(Exception):
    """Raised when source bytes cannot be decoded, resized or re-encoded"""


def scaled_size(width: int, height: int, target_width: int) -> Tuple[int, int]:
    """
    Compute the output size for a fixed target width, preserving aspect ratio.

    Height is round(height * target_width / width), never less than 1.
    Narrower images are scaled up.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size: {width}x{height}")
    if target_width <= 0:
        raise ValueError(f"Invalid target width: {target_width}")

    target_height = max(1, round(height * target_width / width))
    return target_width, target_height


def output_format_for(extension: str) -> str:
    """Map a supported file extension to a Pillow format name"""
    try:
        return OUTPUT_FORMATS[extension.lower()]
    except KeyError:
        raise ValueError(f"Unsupported file type: {extension}")


def content_type_for(image_format: str) -> str:
    return CONTENT_TYPES[image_format]


def resize_to_width(image_bytes: bytes, target_width: int, image_format: str) -> bytes:
    """
    Decode image_bytes, resize to target_width and encode as image_format.

    Args:
        image_bytes: Raw source object body
        target_width: Output width in pixels
        image_format: Pillow format name ('JPEG' or 'PNG')

    Returns:
        Encoded thumbnail bytes

    Raises:
        ImageProcessingError: corrupt input, unsupported encoding variant,
            or an encoder failure
    """
    try:
        with Image.open(BytesIO(image_bytes)) as image:
            image.load()
            size = scaled_size(image.width, image.height, target_width)
            thumbnail = image.resize(size, Image.Resampling.LANCZOS)

        if image_format == 'JPEG' and thumbnail.mode not in JPEG_MODES:
            thumbnail = thumbnail.convert('RGB')

        buffer = BytesIO()
        if image_format == 'JPEG':
            thumbnail.save(buffer, format='JPEG', quality=JPEG_QUALITY)
        else:
            thumbnail.save(buffer, format=image_format)
        return buffer.getvalue()

    except (OSError, ValueError, SyntaxError, EOFError, struct.error,
            Image.DecompressionBombError) as e:
        raise ImageProcessingError(f"Could not resize image: {e}") from e
