"""
Ports (Interfaces) for the analysis pipeline.

Design Pattern: Ports & Adapters (Hexagonal Architecture)
"""

from typing import Protocol, runtime_checkable

from calai.domain.analysis.models import AnalysisRequest, RawModelReply


@runtime_checkable
class IAnalysisClient(Protocol):
    """
    Port for the chat-completion transport.

    Implementations perform exactly one HTTP exchange per call and never
    touch persisted state.
    """

    async def send(self, request: AnalysisRequest) -> RawModelReply:
        """
        Send the request and return the decoded reply.

        Raises:
            TransportError: Non-2xx status, network failure or non-JSON body
            ConfigurationError: Empty API key
        """
        ...
