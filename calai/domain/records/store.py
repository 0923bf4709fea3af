"""
Food record store interface.

Unit-of-work style port: ``insert`` and ``delete`` stage changes, ``save``
commits them.
"""

from typing import Callable, List, Optional, Protocol, runtime_checkable

from calai.domain.records.models import FoodRecord

RecordPredicate = Callable[[FoodRecord], bool]


@runtime_checkable
class FoodRecordStore(Protocol):
    """
    Repository interface for saved food records.

    Implementations must provide:
    - Staged inserts and deletes, committed by save()
    - Cascade removal of ingredient lines with their record
    - Predicate queries with a sort order

    Design Pattern: Repository Pattern + Protocol (Dependency Injection)

    Example:
        >>> await store.insert(record)
        >>> await store.save()
        >>> latest = await store.query(order_by="timestamp", descending=True)
    """

    async def insert(self, record: FoodRecord) -> None:
        """Stage a new or updated record."""
        ...

    async def save(self) -> None:
        """
        Commit staged changes.

        Raises:
            PersistenceError: On storage failure
        """
        ...

    async def delete(self, record: FoodRecord) -> None:
        """Stage removal of a record and its ingredient lines."""
        ...

    async def query(
        self,
        predicate: Optional[RecordPredicate] = None,
        order_by: str = "timestamp",
        descending: bool = True,
    ) -> List[FoodRecord]:
        """
        Return committed records matching ``predicate``, sorted.

        Args:
            predicate: Filter, all records when None
            order_by: FoodRecord attribute to sort on
            descending: Newest / largest first when True
        """
        ...
