"""
Analysis state machine values.

IDLE → ANALYZING → {SUCCEEDED, FAILED}. SUCCEEDED and FAILED are terminal
for an attempt; a new capture starts over from IDLE.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from calai.domain.analysis.models import AnalysisResult
from calai.domain.shared.errors import AnalysisError


class AnalysisPhase(str, Enum):
    """Lifecycle phase of one analysis attempt."""

    IDLE = "IDLE"  # Waiting for an image
    ANALYZING = "ANALYZING"  # Request in flight
    SUCCEEDED = "SUCCEEDED"  # Result applied to the record
    FAILED = "FAILED"  # Attempt ended with an error


_ALLOWED_TRANSITIONS = {
    AnalysisPhase.IDLE: {AnalysisPhase.ANALYZING, AnalysisPhase.FAILED},
    AnalysisPhase.ANALYZING: {AnalysisPhase.SUCCEEDED, AnalysisPhase.FAILED},
    AnalysisPhase.SUCCEEDED: set(),
    AnalysisPhase.FAILED: set(),
}


@dataclass(frozen=True)
class AnalysisState:
    """
    Tagged analysis state.

    ``result`` is set only in SUCCEEDED, ``error`` only in FAILED.
    Use the constructors instead of building instances directly.

    Example:
        >>> state = AnalysisState.idle()
        >>> state.can_transition_to(AnalysisPhase.ANALYZING)
        True
    """

    phase: AnalysisPhase
    result: Optional[AnalysisResult] = None
    error: Optional[AnalysisError] = None

    @classmethod
    def idle(cls) -> AnalysisState:
        return cls(phase=AnalysisPhase.IDLE)

    @classmethod
    def analyzing(cls) -> AnalysisState:
        return cls(phase=AnalysisPhase.ANALYZING)

    @classmethod
    def succeeded(cls, result: AnalysisResult) -> AnalysisState:
        return cls(phase=AnalysisPhase.SUCCEEDED, result=result)

    @classmethod
    def failed(cls, error: AnalysisError) -> AnalysisState:
        return cls(phase=AnalysisPhase.FAILED, error=error)

    @property
    def is_terminal(self) -> bool:
        return self.phase in (AnalysisPhase.SUCCEEDED, AnalysisPhase.FAILED)

    def can_transition_to(self, phase: AnalysisPhase) -> bool:
        # IDLE → FAILED covers an image that could not be encoded
        return phase in _ALLOWED_TRANSITIONS[self.phase]
