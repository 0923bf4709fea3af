"""
Domain exceptions.

Typed exceptions for explicit error handling.
Every analysis failure is terminal for the current attempt and carries a
message that can be shown to the user as-is.
"""

from __future__ import annotations

from typing import Optional


# ═══════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════


class DomainError(Exception):
    """
    Base exception for all domain errors.

    All domain-specific exceptions inherit from this.
    Allows catching all domain errors with single except clause.
    """

    pass


# ═══════════════════════════════════════════════════════════
# ANALYSIS PIPELINE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class AnalysisError(DomainError):
    """
    Base exception for the food image analysis pipeline.

    Subclasses map one-to-one to the failure modes of a single
    analysis attempt. None of them is retried.
    """

    user_message = "The photo could not be analyzed."

    def __str__(self) -> str:
        detail = super().__str__()
        return detail or self.user_message


class EncodingFailedError(AnalysisError):
    """
    Image could not be encoded into a bounded JPEG payload.

    Raised when:
    - The captured frame cannot be decoded
    - JPEG encoding produced no data
    - The size cap is smaller than the smallest possible JPEG

    Example:
        >>> raise EncodingFailedError("JPEG encoder returned no data")
    """

    user_message = "Failed to process image."


class TransportError(AnalysisError):
    """
    HTTP exchange with the model endpoint failed.

    Raised when:
    - The endpoint answered with a non-2xx status
    - The connection failed or timed out (status_code is None)
    - A 2xx body was not a JSON object

    Attributes:
        status_code: HTTP status, None when no response was received
        body: Response text, or the network error description

    Example:
        >>> raise TransportError(401, '{"error": "invalid_api_key"}')
    """

    user_message = "The analysis service request failed."

    def __init__(self, status_code: Optional[int], body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        if status_code is None:
            message = f"Request failed: {body}"
        else:
            message = f"API request failed with status {status_code}: {body}"
        super().__init__(message)


class ConfigurationError(AnalysisError):
    """
    Required configuration is missing or invalid.

    Raised when:
    - The API credential is empty at request time
    - An environment value cannot be parsed

    Example:
        >>> raise ConfigurationError("OPENAI_API_KEY is not set")
    """

    user_message = "The analysis service is not configured."


class MissingContentError(AnalysisError):
    """Model reply has no choices or the first choice has no text."""

    user_message = "Invalid response format from API."


class NoJsonFoundError(AnalysisError):
    """
    Model reply text contains no JSON object span.

    Attributes:
        content: The reply text that was searched
    """

    user_message = "Could not find nutrition data in the response."

    def __init__(self, content: str) -> None:
        self.content = content
        super().__init__(f"Could not find JSON in response: {content}")


class SchemaMismatchError(AnalysisError):
    """
    JSON candidate does not match the analysis result schema.

    Raised when the candidate is not valid JSON, a required field is
    missing or a field has the wrong type.

    Attributes:
        candidate: The JSON text that failed validation
    """

    user_message = "The nutrition data returned was incomplete."

    def __init__(self, message: str, candidate: str = "") -> None:
        self.candidate = candidate
        super().__init__(message)


# ═══════════════════════════════════════════════════════════
# INFRASTRUCTURE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class PersistenceError(DomainError):
    """
    Record store operation failed.

    Raised when:
    - Saving pending changes fails
    - A record cannot be deleted

    Example:
        >>> raise PersistenceError("Disk full")
    """

    pass
