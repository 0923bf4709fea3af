"""
Food image analysis service.

Runs the request side of the pipeline: request construction, transport and
reply extraction for an already normalized image.
"""

from __future__ import annotations

import time

import structlog

from calai.domain.analysis.extractor import extract_analysis_result
from calai.domain.analysis.models import AnalysisResult, EncodedImage, RawImage
from calai.domain.analysis.normalizer import DEFAULT_MAX_BYTES, normalize_image
from calai.domain.analysis.ports import IAnalysisClient
from calai.domain.analysis.prompts import DEFAULT_MAX_TOKENS, DEFAULT_MODEL
from calai.domain.analysis.request_builder import build_analysis_request

logger = structlog.get_logger(__name__)


class FoodImageAnalysisService:
    """
    Service for AI-powered meal photo analysis.

    Normalizes the photo, builds the multimodal request, sends it through
    the injected client and validates the reply. Errors propagate as
    AnalysisError subclasses; nothing is retried.

    Example:
        >>> async with AnalysisClient() as client:
        ...     service = FoodImageAnalysisService(client, api_key="sk-...")
        ...     result = await service.analyze(RawImage.from_path("meal.jpg"))
        >>> print(result.food_name, result.calories)
    """

    def __init__(
        self,
        client: IAnalysisClient,
        api_key: str,
        model: str = DEFAULT_MODEL,
        max_image_bytes: int = DEFAULT_MAX_BYTES,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ):
        """
        Initialize analysis service.

        Args:
            client: Transport implementing IAnalysisClient
            api_key: Bearer credential (validated by the client)
            model: Model identifier
            max_image_bytes: Size cap for the encoded photo
            max_tokens: Completion token limit
        """
        self.client = client
        self.api_key = api_key
        self.model = model
        self.max_image_bytes = max_image_bytes
        self.max_tokens = max_tokens

    def prepare(self, image: RawImage) -> EncodedImage:
        """Encode the photo within the configured size cap."""
        return normalize_image(image, max_bytes=self.max_image_bytes)

    async def analyze_encoded(self, image: EncodedImage) -> AnalysisResult:
        """
        Analyze an already normalized photo.

        Raises:
            ConfigurationError: Empty API key
            TransportError: HTTP failure
            MissingContentError: Reply without text
            NoJsonFoundError: No JSON in the reply
            SchemaMismatchError: JSON does not match the schema
        """
        start_time = time.perf_counter()

        request = build_analysis_request(
            image,
            api_key=self.api_key,
            model=self.model,
            max_tokens=self.max_tokens,
        )
        reply = await self.client.send(request)
        result = extract_analysis_result(reply)

        logger.info(
            "food_image_analyzed",
            food_name=result.food_name,
            calories=result.calories,
            ingredients=len(result.ingredients),
            image_bytes=image.size,
            processing_time_ms=int((time.perf_counter() - start_time) * 1000),
        )
        return result

    async def analyze(self, image: RawImage) -> AnalysisResult:
        """
        Full pipeline: normalize, request, extract.

        Raises:
            EncodingFailedError: Photo could not be encoded
            AnalysisError: Any failure of analyze_encoded
        """
        return await self.analyze_encoded(self.prepare(image))
