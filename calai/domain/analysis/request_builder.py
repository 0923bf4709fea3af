"""Chat-completion request construction."""

from __future__ import annotations

from calai.domain.analysis.models import AnalysisRequest, EncodedImage
from calai.domain.analysis.prompts import (
    ANALYSIS_INSTRUCTION,
    ANALYSIS_OUTPUT_SCHEMA,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    PROMPT_VERSION,
)


def build_analysis_request(
    image: EncodedImage,
    api_key: str,
    model: str = DEFAULT_MODEL,
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> AnalysisRequest:
    """
    Assemble the multimodal request for one analysis attempt.

    The key is carried as-is; an empty key is reported by the client when
    the request is sent.

    Args:
        image: Normalized JPEG payload
        api_key: Bearer credential
        model: Model identifier
        max_tokens: Completion token limit

    Returns:
        Immutable AnalysisRequest

    Example:
        >>> request = build_analysis_request(encoded, api_key="sk-test")
        >>> request.image_data_uri.startswith("data:image/jpeg;base64,")
        True
    """
    return AnalysisRequest(
        instruction=ANALYSIS_INSTRUCTION,
        output_schema=ANALYSIS_OUTPUT_SCHEMA,
        prompt_version=PROMPT_VERSION,
        image_base64=image.to_base64(),
        api_key=api_key,
        model=model,
        max_tokens=max_tokens,
    )
