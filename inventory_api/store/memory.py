"""
Dict-backed store for tests and local experiments.

Writes made through a transaction are buffered and applied in one step on
commit, after re-checking every touched item's version. Reads yield to the
event loop so concurrent tasks interleave the way they would against a real
database.
"""
import asyncio
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Dict, Iterable, List, Optional, Set, Tuple
from uuid import UUID

from inventory_api.core.exceptions import ConflictError, StorageError
from inventory_api.core.timeutil import utc_now
from inventory_api.models.item import ItemRecord, ItemStatus
from inventory_api.models.movement import MovementRecord, MovementType
from inventory_api.models.user import UserRef
from inventory_api.store.base import MovementFilter, PageParams


class MemoryTransaction:
    def __init__(self, store: "MemoryStore"):
        self._store = store
        self._items: Dict[UUID, ItemRecord] = {}
        self._expected_versions: Dict[UUID, int] = {}
        self._movements: List[MovementRecord] = []

    async def get_item(self, item_id: UUID) -> Optional[ItemRecord]:
        await self._store._io("get_item")
        item = self._items.get(item_id) or self._store.items.get(item_id)
        return item.model_copy(deep=True) if item else None

    async def insert_movement(self, movement: MovementRecord) -> MovementRecord:
        await self._store._io("insert_movement")
        stored = movement.model_copy(deep=True)
        self._movements.append(stored)
        return stored.model_copy(deep=True)

    async def set_quantity_and_status(
        self, item_id: UUID, expected_version: int, quantity: int, status: ItemStatus
    ) -> ItemRecord:
        await self._store._io("set_quantity_and_status")
        current = self._items.get(item_id) or self._store.items.get(item_id)
        if current is None or current.version != expected_version:
            raise ConflictError(f"Item {item_id} was modified concurrently")

        updated = current.model_copy(
            update={
                "quantity": quantity,
                "status": status,
                "version": current.version + 1,
                "updated_at": utc_now(),
            }
        )
        self._items[item_id] = updated
        self._expected_versions.setdefault(item_id, expected_version)
        return updated.model_copy(deep=True)

    def commit(self) -> None:
        # no awaits from here on: the commit is atomic on the event loop
        self._store._check("commit")
        for item_id, expected in self._expected_versions.items():
            if self._store.items[item_id].version != expected:
                raise ConflictError(f"Item {item_id} was modified concurrently")
        self._store.items.update(self._items)
        self._store.movements.extend(self._movements)


class MemoryStore:
    def __init__(self, fail_on: Iterable[str] = (), latency: float = 0.0):
        self.items: Dict[UUID, ItemRecord] = {}
        self.users: Dict[UUID, UserRef] = {}
        self.movements: List[MovementRecord] = []  # commit order
        self.fail_on: Set[str] = set(fail_on)
        self.latency = latency
        self.commits = 0
        self.rollbacks = 0

    # --- test helpers ---
    def add_item(self, item: ItemRecord) -> ItemRecord:
        self.items[item.id] = item
        return item

    def add_user(self, user: UserRef) -> UserRef:
        self.users[user.id] = user
        return user

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise StorageError(f"Simulated storage failure during {operation}")

    async def _io(self, operation: str) -> None:
        self._check(operation)
        await asyncio.sleep(self.latency)

    # --- writes ---
    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[MemoryTransaction]:
        tx = MemoryTransaction(self)
        try:
            yield tx
            tx.commit()
        except BaseException:
            self.rollbacks += 1
            raise
        self.commits += 1

    # --- reads ---
    async def get_item(self, item_id: UUID) -> Optional[ItemRecord]:
        await self._io("get_item")
        item = self.items.get(item_id)
        return item.model_copy(deep=True) if item else None

    async def get_user(self, user_id: UUID) -> Optional[UserRef]:
        await self._io("get_user")
        return self.users.get(user_id)

    async def get_movement(self, movement_id: UUID) -> Optional[MovementRecord]:
        await self._io("get_movement")
        return next((m for m in self.movements if m.id == movement_id), None)

    def _matches(self, movement: MovementRecord, criteria: MovementFilter) -> bool:
        if criteria.item_id is not None and movement.item_id != criteria.item_id:
            return False
        if criteria.type is not None and movement.type != criteria.type:
            return False
        if criteria.start is not None and movement.created_at < criteria.start:
            return False
        if criteria.end is not None and movement.created_at > criteria.end:
            return False
        if criteria.search:
            needle = criteria.search.lower()
            haystack = (movement.reason, movement.reference, movement.notes)
            if not any(field and needle in field.lower() for field in haystack):
                return False
        return True

    def _ordered(self, movements: List[MovementRecord], descending: bool) -> List[MovementRecord]:
        # list order is commit order, which breaks created_at ties
        indexed = list(enumerate(movements))
        indexed.sort(key=lambda pair: (pair[1].created_at, pair[0]), reverse=descending)
        return [m for _, m in indexed]

    async def find_movements(
        self, criteria: MovementFilter, params: PageParams
    ) -> Tuple[List[MovementRecord], int]:
        await self._io("find_movements")
        matched = [m for m in self.movements if self._matches(m, criteria)]
        ordered = self._ordered(matched, params.descending)
        return ordered[params.skip:params.skip + params.limit], len(matched)

    async def recent_movements(self, limit: int) -> List[MovementRecord]:
        await self._io("recent_movements")
        return self._ordered(self.movements, descending=True)[:limit]

    async def movement_totals(self, item_id: Optional[UUID] = None) -> Dict[MovementType, int]:
        await self._io("movement_totals")
        totals: Dict[MovementType, int] = {}
        for m in self.movements:
            if item_id is None or m.item_id == item_id:
                totals[m.type] = totals.get(m.type, 0) + m.quantity
        return totals

    async def movement_history(self, item_id: UUID) -> List[MovementRecord]:
        await self._io("movement_history")
        history = [m for m in self.movements if m.item_id == item_id]
        return sorted(history, key=lambda m: m.item_version)

    async def movements_between(self, start: datetime, end: datetime) -> List[MovementRecord]:
        await self._io("movements_between")
        matched = [m for m in self.movements if start <= m.created_at <= end]
        return self._ordered(matched, descending=False)
