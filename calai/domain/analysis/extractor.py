"""
Model reply extraction.

Locates the JSON object inside the model's free-text answer and validates
it against AnalysisResult. Extraction is all-or-nothing.
"""

from __future__ import annotations

import structlog
from pydantic import ValidationError

from calai.domain.analysis.models import AnalysisResult, RawModelReply
from calai.domain.shared.errors import (
    MissingContentError,
    NoJsonFoundError,
    SchemaMismatchError,
)

logger = structlog.get_logger(__name__)


def find_json_candidate(text: str) -> str:
    """
    Return the span from the first ``{`` to the last ``}``.

    Tolerates prose or markdown fences around the JSON. If the text holds
    several independent objects the whole outer span is returned and will
    fail validation.

    Raises:
        NoJsonFoundError: If there is no ``{``, or no ``}`` after it

    Example:
        >>> find_json_candidate('Sure! ```json\\n{"a": 1}\\n``` Enjoy.')
        '{"a": 1}'
    """
    start = text.find("{")
    if start == -1:
        raise NoJsonFoundError(text)

    end = text.rfind("}")
    if end < start:
        raise NoJsonFoundError(text)

    return text[start : end + 1]


def extract_analysis_result(reply: RawModelReply) -> AnalysisResult:
    """
    Parse the model reply into an AnalysisResult.

    Steps:
    1. First choice must carry text
    2. A JSON object span must exist in that text
    3. The span must validate against the schema (strict types)

    Args:
        reply: Chat-completion reply

    Returns:
        Validated AnalysisResult

    Raises:
        MissingContentError: No choices, or first choice without text
        NoJsonFoundError: No ``{ ... }`` span in the text
        SchemaMismatchError: Invalid JSON, missing field or wrong type
    """
    content = reply.first_content
    if content is None or not content.strip():
        raise MissingContentError(
            f"Reply has no text content ({len(reply.choices)} choices)"
        )

    candidate = find_json_candidate(content)

    try:
        result = AnalysisResult.model_validate_json(candidate)
    except ValidationError as e:
        logger.warning(
            "analysis_schema_mismatch",
            errors=e.error_count(),
            candidate_length=len(candidate),
        )
        raise SchemaMismatchError(
            f"Response does not match the analysis schema: {e}", candidate=candidate
        ) from e

    logger.debug(
        "analysis_extracted",
        food_name=result.food_name,
        ingredients=len(result.ingredients),
    )
    return result
