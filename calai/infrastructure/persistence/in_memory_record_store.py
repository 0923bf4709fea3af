"""In-memory food record store.

Provides an in-memory implementation of the FoodRecordStore port for tests
and the command line tool. Uses dictionaries with no external dependencies.
"""

from typing import Dict, List, Optional, Set
from uuid import UUID

import structlog

from calai.domain.records.models import FoodRecord
from calai.domain.records.store import RecordPredicate

logger = structlog.get_logger(__name__)


class InMemoryFoodRecordStore:
    """
    In-memory implementation of the FoodRecordStore port.

    Inserts and deletes are staged until save(). Records are stored and
    returned as deep copies so callers cannot mutate stored state.

    Thread safety: NOT thread-safe (single event loop only)
    Persistence: Data lost on process restart (in-memory only)

    Example:
        >>> store = InMemoryFoodRecordStore()
        >>> await store.insert(record)
        >>> await store.save()
        >>> records = await store.query()
    """

    def __init__(self) -> None:
        """Initialize store with empty storage."""
        self._storage: Dict[UUID, FoodRecord] = {}
        self._pending_inserts: Dict[UUID, FoodRecord] = {}
        self._pending_deletes: Set[UUID] = set()

    @property
    def has_changes(self) -> bool:
        return bool(self._pending_inserts or self._pending_deletes)

    async def insert(self, record: FoodRecord) -> None:
        """Stage a deep copy of the record."""
        self._pending_deletes.discard(record.id)
        self._pending_inserts[record.id] = record.model_copy(deep=True)

    async def delete(self, record: FoodRecord) -> None:
        """Stage removal; ingredient lines go with the record."""
        self._pending_inserts.pop(record.id, None)
        self._pending_deletes.add(record.id)

    async def save(self) -> None:
        """Commit staged inserts and deletes."""
        inserted = len(self._pending_inserts)
        deleted = 0

        self._storage.update(self._pending_inserts)
        for record_id in self._pending_deletes:
            if self._storage.pop(record_id, None) is not None:
                deleted += 1

        self._pending_inserts.clear()
        self._pending_deletes.clear()
        logger.debug("record_store_saved", inserted=inserted, deleted=deleted)

    async def query(
        self,
        predicate: Optional[RecordPredicate] = None,
        order_by: str = "timestamp",
        descending: bool = True,
    ) -> List[FoodRecord]:
        """
        Return committed records matching ``predicate``.

        Records without a value for ``order_by`` sort after the others in
        ascending order.

        Raises:
            ValueError: If order_by is not a FoodRecord field
        """
        if order_by not in FoodRecord.model_fields:
            raise ValueError(f"Cannot sort by unknown field: {order_by}")

        matches = [
            record
            for record in self._storage.values()
            if predicate is None or predicate(record)
        ]

        def sort_key(record: FoodRecord) -> tuple:
            value = getattr(record, order_by)
            return (value is None, value)

        matches.sort(key=sort_key, reverse=descending)
        return [record.model_copy(deep=True) for record in matches]
