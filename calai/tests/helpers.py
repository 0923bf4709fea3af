"""Test helpers: synthetic photos and chat-completion bodies."""

import io
import random
from typing import Any, Dict, Optional

from PIL import Image


def noise_image(width: int, height: int, seed: int = 0) -> Image.Image:
    """RGB image of random pixels; compresses badly on purpose."""
    rng = random.Random(seed)
    return Image.frombytes("RGB", (width, height), rng.randbytes(width * height * 3))


def gradient_image(width: int, height: int) -> Image.Image:
    """Smooth RGB image; compresses well."""
    horizontal = Image.linear_gradient("L").resize((width, height))
    mirrored = horizontal.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
    return Image.merge("RGB", (horizontal, mirrored, horizontal))


def jpeg_bytes(image: Image.Image, quality: int = 90) -> bytes:
    output = io.BytesIO()
    image.save(output, format="JPEG", quality=quality)
    return output.getvalue()


def make_reply(content: Optional[str], **overrides: Any) -> Dict[str, Any]:
    """Chat-completion body with a single choice."""
    body: Dict[str, Any] = {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "created": 1749400000,
        "model": "gpt-4.1-mini",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }
    body.update(overrides)
    return body
