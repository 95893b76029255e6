"""
Store handles the stock core is built on.

A store is constructed once (at app startup, or per test) and passed into the
ledger and adjustment service. `Store.transaction()` is the only way to write:
it commits when the block exits normally and rolls back on any exception.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncContextManager, Dict, List, Optional, Protocol, Tuple
from uuid import UUID

from inventory_api.models.item import ItemRecord, ItemStatus
from inventory_api.models.movement import MovementRecord, MovementType
from inventory_api.models.user import UserRef


@dataclass(frozen=True)
class PageParams:
    page: int = 1
    limit: int = 10
    sort_order: str = "desc"

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def descending(self) -> bool:
        return self.sort_order != "asc"


@dataclass(frozen=True)
class MovementFilter:
    item_id: Optional[UUID] = None
    type: Optional[MovementType] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    search: Optional[str] = None  # reason / reference / notes, case-insensitive


class Transaction(Protocol):
    async def get_item(self, item_id: UUID) -> Optional[ItemRecord]: ...

    async def insert_movement(self, movement: MovementRecord) -> MovementRecord: ...

    async def set_quantity_and_status(
        self, item_id: UUID, expected_version: int, quantity: int, status: ItemStatus
    ) -> ItemRecord:
        """Compare-and-swap on `version`; raises ConflictError when it moved."""
        ...


class Store(Protocol):
    def transaction(self) -> AsyncContextManager[Transaction]: ...

    async def get_item(self, item_id: UUID) -> Optional[ItemRecord]: ...

    async def get_user(self, user_id: UUID) -> Optional[UserRef]: ...

    async def get_movement(self, movement_id: UUID) -> Optional[MovementRecord]: ...

    async def find_movements(
        self, criteria: MovementFilter, params: PageParams
    ) -> Tuple[List[MovementRecord], int]: ...

    async def recent_movements(self, limit: int) -> List[MovementRecord]: ...

    async def movement_totals(self, item_id: Optional[UUID] = None) -> Dict[MovementType, int]: ...

    async def movement_history(self, item_id: UUID) -> List[MovementRecord]:
        """Every movement of one item, oldest commit first."""
        ...

    async def movements_between(self, start: datetime, end: datetime) -> List[MovementRecord]: ...
