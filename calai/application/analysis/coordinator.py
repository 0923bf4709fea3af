"""
Analysis Coordinator.

Owns the lifecycle of one meal capture: IDLE → ANALYZING → SUCCEEDED or
FAILED, the food record being filled in, the manual edit surface and the
hand-off to the record store.

Design Pattern: State Machine + Dependency Injection
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

import structlog

from calai.application.analysis.service import FoodImageAnalysisService
from calai.domain.analysis.models import RawImage
from calai.domain.analysis.state import AnalysisPhase, AnalysisState
from calai.domain.records.models import FoodRecord, IngredientLine
from calai.domain.records.store import FoodRecordStore
from calai.domain.shared.errors import AnalysisError, PersistenceError

logger = structlog.get_logger(__name__)

StateListener = Callable[[AnalysisState, FoodRecord], None]


class AnalysisCoordinator:
    """
    Coordinates meal photo analysis for the record being edited.

    Responsibilities:
    - Start a new record per capture and store the encoded photo on it
      before the network call
    - Apply the analysis result (or the failure) when the call completes
    - Drop completions of superseded attempts or after close()
    - Expose manual edits and save the record

    All state changes happen in the coroutine that awaits the analysis, so
    the record has a single writer. Observers register with subscribe();
    they are notified after every transition.

    Example:
        >>> coordinator = AnalysisCoordinator(service, store)
        >>> state = await coordinator.analyze(RawImage.from_path("meal.jpg"))
        >>> if state.phase is AnalysisPhase.SUCCEEDED:
        ...     await coordinator.save()
    """

    def __init__(self, service: FoodImageAnalysisService, store: FoodRecordStore):
        """
        Initialize coordinator with dependencies.

        Args:
            service: Analysis pipeline
            store: Record store receiving saved records
        """
        self.service = service
        self.store = store
        self.error_message: Optional[str] = None

        self._state = AnalysisState.idle()
        self._record = FoodRecord()
        self._attempt = 0
        self._closed = False
        self._listeners: List[StateListener] = []

    # ═══════════════════════════════════════════════════════════
    # OBSERVATION
    # ═══════════════════════════════════════════════════════════

    @property
    def state(self) -> AnalysisState:
        return self._state

    @property
    def record(self) -> FoodRecord:
        """Record of the current attempt."""
        return self._record

    @property
    def is_analyzing(self) -> bool:
        return self._state.phase is AnalysisPhase.ANALYZING

    @property
    def is_closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a state listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Tear down; completions that arrive later are ignored."""
        self._closed = True
        self._listeners.clear()
        logger.debug("coordinator_closed", record_id=str(self._record.id))

    # ═══════════════════════════════════════════════════════════
    # ANALYSIS
    # ═══════════════════════════════════════════════════════════

    async def analyze(self, image: RawImage) -> AnalysisState:
        """
        Run one analysis attempt for a new capture.

        A fresh FoodRecord replaces the current one. If another attempt is
        still in flight it is superseded: its completion will not touch
        any record.

        Args:
            image: Captured photo

        Returns:
            Outcome of this attempt (SUCCEEDED or FAILED). For an attempt
            that was superseded or closed, the outcome is returned without
            being applied.

        Raises:
            RuntimeError: If the coordinator is closed
        """
        self._ensure_open()

        self._attempt += 1
        attempt = self._attempt
        record = FoodRecord()
        self._record = record
        self.error_message = None
        self._publish(AnalysisState.idle())

        try:
            encoded = self.service.prepare(image)
        except AnalysisError as e:
            return self._complete(attempt, record, AnalysisState.failed(e))

        record.image_data = encoded.data
        self._transition(AnalysisState.analyzing())
        logger.info(
            "analysis_started",
            record_id=str(record.id),
            attempt=attempt,
            image_bytes=encoded.size,
        )

        try:
            result = await self.service.analyze_encoded(encoded)
        except AnalysisError as e:
            return self._complete(attempt, record, AnalysisState.failed(e))

        return self._complete(attempt, record, AnalysisState.succeeded(result))

    def _complete(self, attempt: int, record: FoodRecord, outcome: AnalysisState) -> AnalysisState:
        """Apply a terminal state if the attempt is still the live one."""
        if self._closed or attempt != self._attempt or record is not self._record:
            logger.info(
                "analysis_completion_dropped",
                record_id=str(record.id),
                attempt=attempt,
                closed=self._closed,
                phase=outcome.phase.value,
            )
            return outcome

        if outcome.phase is AnalysisPhase.SUCCEEDED and outcome.result is not None:
            record.apply_analysis(outcome.result)
            logger.info(
                "analysis_succeeded",
                record_id=str(record.id),
                food_name=record.food_name,
                ingredients=len(record.ingredients),
            )
        elif outcome.error is not None:
            self.error_message = f"Analysis failed: {outcome.error.user_message}"
            logger.warning(
                "analysis_failed",
                record_id=str(record.id),
                error_type=type(outcome.error).__name__,
                error=str(outcome.error),
            )

        self._transition(outcome)
        return outcome

    def _transition(self, new_state: AnalysisState) -> None:
        if not self._state.can_transition_to(new_state.phase):
            raise RuntimeError(
                f"Invalid analysis transition {self._state.phase.value} → {new_state.phase.value}"
            )
        self._publish(new_state)

    def _publish(self, new_state: AnalysisState) -> None:
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state, self._record)

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Coordinator is closed")

    # ═══════════════════════════════════════════════════════════
    # MANUAL EDITS
    # ═══════════════════════════════════════════════════════════

    def set_food_name(self, name: str) -> None:
        self._record.food_name = name

    def set_notes(self, notes: Optional[str]) -> None:
        self._record.notes = notes

    def set_manual_calories(self, calories: float) -> None:
        """Manual calorie figure; ignored for the total while lines exist."""
        self._record.set_manual_calories(calories)

    def add_ingredient(self) -> IngredientLine:
        return self._record.add_ingredient()

    def remove_ingredients(self, indices: Iterable[int]) -> None:
        self._record.remove_ingredients(indices)

    def edit_ingredient(
        self,
        index: int,
        *,
        name: Optional[str] = None,
        total_grams: Optional[float] = None,
        calories_per_gram: Optional[float] = None,
        total_calories: Optional[float] = None,
    ) -> IngredientLine:
        return self._record.edit_ingredient(
            index,
            name=name,
            total_grams=total_grams,
            calories_per_gram=calories_per_gram,
            total_calories=total_calories,
        )

    def update_calories(self) -> float:
        """Recompute the record total and return it."""
        self._record.update_calories()
        return self._record.total_calories

    # ═══════════════════════════════════════════════════════════
    # PERSISTENCE
    # ═══════════════════════════════════════════════════════════

    async def save(self) -> bool:
        """
        Hand the record to the store.

        Sets the timestamp if missing, inserts and commits. A store failure
        is reported through ``error_message``; it is not raised.

        Returns:
            True if the record was saved
        """
        self._ensure_open()
        record = self._record
        if record.timestamp is None:
            record.timestamp = datetime.now(timezone.utc)

        try:
            await self.store.insert(record)
            await self.store.save()
        except PersistenceError as e:
            self.error_message = f"Failed to save entry: {e}"
            logger.error("record_save_failed", record_id=str(record.id), error=str(e))
            return False

        logger.info(
            "record_saved",
            record_id=str(record.id),
            food_name=record.food_name,
            total_calories=record.total_calories,
        )
        return True
