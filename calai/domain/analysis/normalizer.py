"""
Image normalization.

Turns a captured photo into a JPEG payload no larger than the configured
cap. Quality is reduced first; pixel dimensions only when the quality floor
is not enough.
"""

from __future__ import annotations

import io
import math

import structlog
from PIL import Image

from calai.domain.analysis.models import EncodedImage, RawImage
from calai.domain.shared.errors import EncodingFailedError

logger = structlog.get_logger(__name__)

DEFAULT_MAX_BYTES = 1_000_000

# JPEG quality in percent: 0.8 down to 0.1 in steps of 0.1
INITIAL_QUALITY = 80
QUALITY_STEP = 10
QUALITY_FLOOR = 10

# Later downscale passes shrink each side by at least this factor
MAX_REPEAT_SCALE = 0.9


def normalize_image(image: RawImage, max_bytes: int = DEFAULT_MAX_BYTES) -> EncodedImage:
    """
    Encode a photo as a JPEG of at most ``max_bytes`` bytes.

    Algorithm:
    1. Encode at quality 80, lowering by 10 until the payload fits or the
       floor (10) is reached.
    2. Still too large: scale both sides by ``sqrt(max_bytes / size)`` and
       re-encode at the floor quality. Repeated until the payload fits.

    Args:
        image: Captured photo
        max_bytes: Upper bound for the encoded payload

    Returns:
        EncodedImage with ``size <= max_bytes``

    Raises:
        EncodingFailedError: If encoding yields no data, or the cap is
            below what a 1x1 JPEG needs
        ValueError: If max_bytes is not positive

    Example:
        >>> encoded = normalize_image(RawImage.from_path("meal.jpg"))
        >>> assert encoded.size <= 1_000_000
    """
    if max_bytes <= 0:
        raise ValueError(f"max_bytes must be positive, got {max_bytes}")

    pixels = _to_rgb(image.pixels)
    quality = INITIAL_QUALITY
    data = _encode_jpeg(pixels, quality)
    original_size = len(data)

    while len(data) > max_bytes and quality > QUALITY_FLOOR:
        quality -= QUALITY_STEP
        data = _encode_jpeg(pixels, quality)

    resize_passes = 0
    while len(data) > max_bytes:
        if pixels.width <= 1 and pixels.height <= 1:
            raise EncodingFailedError(
                f"Cannot fit image into {max_bytes} bytes, smallest encoding is {len(data)}"
            )
        factor = math.sqrt(max_bytes / len(data))
        if resize_passes:
            factor = min(factor, MAX_REPEAT_SCALE)
        pixels = _resize(pixels, factor)
        data = _encode_jpeg(pixels, quality)
        resize_passes += 1

    logger.debug(
        "image_normalized",
        original_size=original_size,
        encoded_size=len(data),
        quality=quality,
        resize_passes=resize_passes,
        width=pixels.width,
        height=pixels.height,
    )

    return EncodedImage(
        data=data,
        quality=quality,
        width=pixels.width,
        height=pixels.height,
        scale=image.scale,
    )


def _to_rgb(img: Image.Image) -> Image.Image:
    """Flatten alpha and palette images onto white; JPEG has no alpha."""
    if img.mode in ("RGBA", "LA", "P"):
        if img.mode == "P":
            img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        mask = img.split()[-1] if img.mode in ("RGBA", "LA") else None
        background.paste(img, mask=mask)
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def _resize(img: Image.Image, factor: float) -> Image.Image:
    """Scale both sides by ``factor``, keeping the aspect ratio."""
    width = max(1, int(img.width * factor))
    height = max(1, int(img.height * factor))
    return img.resize((width, height), Image.Resampling.LANCZOS)


def _encode_jpeg(img: Image.Image, quality: int) -> bytes:
    output = io.BytesIO()
    try:
        img.save(output, format="JPEG", quality=quality, optimize=True)
    except (OSError, ValueError) as e:
        raise EncodingFailedError(f"JPEG encoding failed: {e}") from e
    data = output.getvalue()
    if not data:
        raise EncodingFailedError("JPEG encoder returned no data")
    return data
