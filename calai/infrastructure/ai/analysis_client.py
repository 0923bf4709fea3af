"""
Chat-completion HTTP client for meal photo analysis.

Single attempt per call: no retries, no backoff.
"""

from __future__ import annotations

import time
from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError

from calai.domain.analysis.models import AnalysisRequest, RawModelReply
from calai.domain.shared.errors import ConfigurationError, TransportError

logger = structlog.get_logger(__name__)


class AnalysisClient:
    """
    Async client for the chat-completion endpoint.

    Implements the IAnalysisClient port with httpx. Performs one POST per
    request and maps every transport failure to TransportError.

    Example:
        >>> async with AnalysisClient() as client:
        ...     reply = await client.send(request)
        ...     print(reply.first_content)
    """

    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    # Same request timeout the phone app uses by default (60 s, no retry)
    DEFAULT_TIMEOUT_S = 60.0

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """
        Initialize client.

        Args:
            base_url: API root, ``/chat/completions`` is appended
            client: Optional pre-configured httpx client (for testing);
                it is not closed on exit
        """
        self.base_url = base_url.rstrip("/")
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> AnalysisClient:
        """Async context manager entry."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.DEFAULT_TIMEOUT_S))
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    async def send(self, request: AnalysisRequest) -> RawModelReply:
        """
        POST the request and decode the reply.

        Args:
            request: Built analysis request

        Returns:
            RawModelReply (content not yet validated)

        Raises:
            ConfigurationError: If the API key is empty
            TransportError: Non-2xx status, network error, or a body that is
                not a chat-completion JSON object
            RuntimeError: If used outside ``async with``
        """
        if not request.api_key.strip():
            raise ConfigurationError("API key is empty; set OPENAI_API_KEY")
        if self._client is None:
            raise RuntimeError("Client not initialized. Use async with.")

        headers = {
            "Authorization": f"Bearer {request.api_key}",
            "Content-Type": "application/json",
        }
        payload = request.to_payload()

        logger.info(
            "analysis_request_started",
            endpoint=self.endpoint,
            model=request.model,
            image_base64_chars=len(request.image_base64),
        )
        start = time.perf_counter()

        try:
            response = await self._client.post(self.endpoint, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("analysis_request_failed", error=str(e), error_type=type(e).__name__)
            raise TransportError(None, str(e) or type(e).__name__) from e

        elapsed_ms = int((time.perf_counter() - start) * 1000)

        if not response.is_success:
            logger.warning(
                "analysis_request_rejected",
                status_code=response.status_code,
                elapsed_ms=elapsed_ms,
            )
            raise TransportError(response.status_code, response.text)

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(response.status_code, response.text) from e

        if not isinstance(body, dict):
            raise TransportError(response.status_code, response.text)

        try:
            reply = RawModelReply.model_validate(body)
        except ValidationError as e:
            raise TransportError(response.status_code, response.text) from e

        logger.info(
            "analysis_request_completed",
            status_code=response.status_code,
            elapsed_ms=elapsed_ms,
            choices=len(reply.choices),
            finish_reason=reply.choices[0].finish_reason if reply.choices else None,
        )
        return reply
