"""History queries over the record store."""

from __future__ import annotations

import calendar
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional

import structlog

from calai.domain.history.filters import (
    TimeFrame,
    build_predicate,
    group_by_day,
    total_calories,
)
from calai.domain.records.models import FoodRecord
from calai.domain.records.store import FoodRecordStore

logger = structlog.get_logger(__name__)


class HistoryService:
    """
    Read and delete saved food records.

    Example:
        >>> history = HistoryService(store)
        >>> today = await history.entries(TimeFrame.DAY)
        >>> print(history.total_calories(today))
    """

    def __init__(self, store: FoodRecordStore, first_weekday: int = calendar.SUNDAY):
        self.store = store
        self.first_weekday = first_weekday

    async def entries(
        self,
        time_frame: TimeFrame = TimeFrame.DAY,
        reference: Optional[datetime] = None,
        search_text: str = "",
    ) -> List[FoodRecord]:
        """
        Records in the time frame matching the search, newest first.

        Args:
            time_frame: Window around ``reference``
            reference: Defaults to now (UTC)
            search_text: Case-insensitive match on name or notes
        """
        reference = reference or datetime.now(timezone.utc)
        predicate = build_predicate(
            time_frame,
            reference,
            search_text=search_text,
            first_weekday=self.first_weekday,
        )
        return await self.store.query(predicate, order_by="timestamp", descending=True)

    async def entries_by_day(
        self,
        time_frame: TimeFrame = TimeFrame.DAY,
        reference: Optional[datetime] = None,
        search_text: str = "",
    ) -> Dict[date, List[FoodRecord]]:
        """Same as entries(), grouped by day (newest day first)."""
        return group_by_day(await self.entries(time_frame, reference, search_text))

    async def delete_entries(self, records: Iterable[FoodRecord]) -> int:
        """
        Delete records (and their ingredient lines) and commit.

        Raises:
            PersistenceError: If the store cannot commit
        """
        count = 0
        for record in records:
            await self.store.delete(record)
            count += 1
        await self.store.save()
        logger.info("records_deleted", count=count)
        return count

    @staticmethod
    def total_calories(records: Iterable[FoodRecord]) -> float:
        return total_calories(records)
