"""
Domain models for food image analysis.

Value objects flowing through the pipeline:
RawImage → EncodedImage → AnalysisRequest → RawModelReply → AnalysisResult.
"""

from __future__ import annotations

import base64
import io
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from PIL import Image, ImageOps
from pydantic import BaseModel, ConfigDict, Field, field_validator

from calai.domain.shared.errors import EncodingFailedError


# ═══════════════════════════════════════════════════════════
# IMAGES
# ═══════════════════════════════════════════════════════════


@dataclass(frozen=True)
class RawImage:
    """
    Captured photo as delivered by the camera collaborator.

    Owned by the caller and never modified by the pipeline.

    Attributes:
        pixels: Decoded Pillow image
        scale: Device pixels per point of the source (kept on resize)

    Example:
        >>> raw = RawImage.from_path("meal.jpg")
        >>> raw.width, raw.height
        (4000, 3000)
    """

    pixels: Image.Image
    scale: float = 1.0

    @property
    def width(self) -> int:
        return self.pixels.width

    @property
    def height(self) -> int:
        return self.pixels.height

    @classmethod
    def from_bytes(cls, data: bytes, scale: float = 1.0) -> RawImage:
        """
        Decode a captured frame.

        EXIF orientation is applied so the model sees the photo upright.

        Raises:
            EncodingFailedError: If the bytes are not a decodable image
        """
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
            image = ImageOps.exif_transpose(image)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise EncodingFailedError(f"Could not decode image: {e}") from e
        return cls(pixels=image, scale=scale)

    @classmethod
    def from_path(cls, path: Union[str, Path], scale: float = 1.0) -> RawImage:
        """Read and decode a photo from disk."""
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise EncodingFailedError(f"Could not read image file {path}: {e}") from e
        return cls.from_bytes(data, scale=scale)


class EncodedImage(BaseModel):
    """
    Size-bounded JPEG payload produced by the normalizer.

    Attributes:
        data: JPEG bytes
        quality: JPEG quality used (1-100)
        width: Encoded pixel width
        height: Encoded pixel height
        scale: Scale factor carried over from the RawImage
    """

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(..., repr=False, description="JPEG bytes")
    quality: int = Field(..., ge=1, le=100, description="JPEG quality")
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    scale: float = Field(1.0, gt=0)

    @field_validator("data")
    @classmethod
    def not_empty(cls, v: bytes) -> bytes:
        """Encoder must have produced something."""
        if not v:
            raise ValueError("Encoded image cannot be empty")
        return v

    @property
    def size(self) -> int:
        """Payload length in bytes."""
        return len(self.data)

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


# ═══════════════════════════════════════════════════════════
# REQUEST
# ═══════════════════════════════════════════════════════════


class AnalysisRequest(BaseModel):
    """
    Immutable chat-completion request for one analysis attempt.

    Combines the fixed instruction, the output schema it describes and the
    base64 image. Rendered to the wire body by ``to_payload``.

    Example:
        >>> request = build_analysis_request(encoded, api_key="sk-...")
        >>> body = request.to_payload()
        >>> body["messages"][0]["content"][1]["type"]
        'image_url'
    """

    model_config = ConfigDict(frozen=True)

    instruction: str = Field(..., min_length=1)
    output_schema: Dict[str, Any] = Field(..., repr=False)
    prompt_version: str = Field(...)
    image_base64: str = Field(..., min_length=1, repr=False)
    api_key: str = Field("", repr=False)
    model: str = Field(..., min_length=1)
    max_tokens: int = Field(1000, gt=0)

    @property
    def image_data_uri(self) -> str:
        return f"data:image/jpeg;base64,{self.image_base64}"

    def messages(self) -> List[Dict[str, Any]]:
        """Single user message with the instruction and the image."""
        return [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": self.instruction},
                    {"type": "image_url", "image_url": {"url": self.image_data_uri}},
                ],
            }
        ]

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for the chat-completion endpoint."""
        return {
            "model": self.model,
            "messages": self.messages(),
            "max_tokens": self.max_tokens,
        }


# ═══════════════════════════════════════════════════════════
# MODEL REPLY (transport shape)
# ═══════════════════════════════════════════════════════════


class ReplyMessage(BaseModel):
    """Message inside a reply choice."""

    role: str = "assistant"
    content: Optional[str] = None


class ReplyChoice(BaseModel):
    """One completion choice."""

    index: int = 0
    message: ReplyMessage = Field(default_factory=ReplyMessage)
    finish_reason: Optional[str] = None


class RawModelReply(BaseModel):
    """
    Chat-completion response body.

    Only ``choices[0].message.content`` is used downstream; the other
    fields are kept for logging.
    """

    id: str = ""
    object: str = ""
    created: int = 0
    model: str = ""
    choices: List[ReplyChoice] = Field(default_factory=list)

    @property
    def first_content(self) -> Optional[str]:
        """Text of the first choice, None if absent."""
        if not self.choices:
            return None
        return self.choices[0].message.content


# ═══════════════════════════════════════════════════════════
# ANALYSIS RESULT (schema contract with the model)
# ═══════════════════════════════════════════════════════════


class IngredientEstimate(BaseModel):
    """
    Single ingredient as estimated by the model.

    Wire names follow the prompt contract (``calorie_per_gram``,
    ``total_grams``, ``total_calories``). The model is asked, not forced,
    to keep ``total_calories == calories_per_gram * total_grams``.

    Example:
        >>> item = IngredientEstimate.model_validate(
        ...     {
        ...         "name": "Lettuce",
        ...         "calorie_per_gram": 0.15,
        ...         "total_grams": 100,
        ...         "total_calories": 15,
        ...     }
        ... )
        >>> item.calories_per_gram
        0.15
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, strict=True)

    name: str
    calories_per_gram: float = Field(..., alias="calorie_per_gram")
    total_grams: float
    total_calories: float


class AnalysisResult(BaseModel):
    """
    Typed nutritional breakdown extracted from the model reply.

    Attributes:
        food_name: Dish name (wire: foodName)
        food_description: Short description (wire: foodDescription)
        calories: Total calories estimated by the model
        ingredients: Per-ingredient estimates, in reply order
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, strict=True)

    food_name: str = Field(..., alias="foodName")
    food_description: str = Field(..., alias="foodDescription")
    calories: float
    ingredients: List[IngredientEstimate]

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with the field names used in the prompt."""
        return self.model_dump(by_alias=True)
