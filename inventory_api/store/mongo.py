"""
MongoDB store: Beanie documents plus a Motor client session per transaction.

Multi-document transactions need a replica set (a single-node `rs0` is
enough for development). Driver failures leave this module as StorageError;
write conflicts the server flags as transient become ConflictError so the
adjustment service can retry them.
"""
import re
from contextlib import asynccontextmanager, contextmanager
from datetime import datetime
from typing import AsyncIterator, Dict, Iterator, List, Optional, Tuple
from uuid import UUID

from beanie.operators import Inc, Or, RegEx, Set
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession
from pymongo.errors import PyMongoError

from inventory_api.core.exceptions import ConflictError, StorageError
from inventory_api.core.timeutil import utc_now
from inventory_api.models.item import Item, ItemStatus
from inventory_api.models.movement import Movement, MovementRecord, MovementType
from inventory_api.models.user import User, UserRef
from inventory_api.store.base import MovementFilter, PageParams


def _translate(exc: PyMongoError, operation: str) -> StorageError:
    if exc.has_error_label("TransientTransactionError"):
        return ConflictError(f"Transient write conflict during {operation}", cause=exc)
    return StorageError(f"Storage failure during {operation}", cause=exc)


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except PyMongoError as exc:
        raise _translate(exc, operation) from exc


class MongoTransaction:
    def __init__(self, session: AsyncIOMotorClientSession):
        self.session = session

    async def get_item(self, item_id: UUID) -> Optional[Item]:
        return await Item.get(item_id, session=self.session)

    async def insert_movement(self, movement: MovementRecord) -> Movement:
        document = Movement(**movement.model_dump())
        await document.insert(session=self.session)
        return document

    async def set_quantity_and_status(
        self, item_id: UUID, expected_version: int, quantity: int, status: ItemStatus
    ) -> Item:
        result = await Item.find_one(
            Item.id == item_id,
            Item.version == expected_version,
            session=self.session,
        ).update(
            Set({Item.quantity: quantity, Item.status: status, Item.updated_at: utc_now()}),
            Inc({Item.version: 1}),
            session=self.session,
        )
        if result is None or result.modified_count == 0:
            raise ConflictError(f"Item {item_id} was modified concurrently")
        return await Item.get(item_id, session=self.session)


class MongoStore:
    def __init__(self, client: AsyncIOMotorClient):
        self.client = client

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[MongoTransaction]:
        try:
            async with await self.client.start_session() as session:
                async with session.start_transaction():
                    yield MongoTransaction(session)
        except PyMongoError as exc:
            raise _translate(exc, "transaction") from exc

    async def get_item(self, item_id: UUID) -> Optional[Item]:
        with storage_errors("get_item"):
            return await Item.get(item_id)

    async def get_user(self, user_id: UUID) -> Optional[UserRef]:
        with storage_errors("get_user"):
            user = await User.get(user_id)
        return user.to_ref() if user else None

    async def get_movement(self, movement_id: UUID) -> Optional[Movement]:
        with storage_errors("get_movement"):
            return await Movement.get(movement_id)

    def _query(self, criteria: MovementFilter):
        conditions = []
        if criteria.item_id is not None:
            conditions.append(Movement.item_id == criteria.item_id)
        if criteria.type is not None:
            conditions.append(Movement.type == criteria.type)
        if criteria.start is not None:
            conditions.append(Movement.created_at >= criteria.start)
        if criteria.end is not None:
            conditions.append(Movement.created_at <= criteria.end)
        if criteria.search:
            pattern = re.escape(criteria.search)
            conditions.append(Or(
                RegEx(Movement.reason, pattern, "i"),
                RegEx(Movement.reference, pattern, "i"),
                RegEx(Movement.notes, pattern, "i"),
            ))
        return Movement.find(*conditions)

    async def find_movements(
        self, criteria: MovementFilter, params: PageParams
    ) -> Tuple[List[Movement], int]:
        order = -Movement.created_at if params.descending else +Movement.created_at
        with storage_errors("find_movements"):
            total = await self._query(criteria).count()
            page = await (
                self._query(criteria).sort(order).skip(params.skip).limit(params.limit).to_list()
            )
        return page, total

    async def recent_movements(self, limit: int) -> List[Movement]:
        with storage_errors("recent_movements"):
            return await Movement.find_all().sort(-Movement.created_at).limit(limit).to_list()

    async def movement_totals(self, item_id: Optional[UUID] = None) -> Dict[MovementType, int]:
        query = Movement.find(Movement.item_id == item_id) if item_id else Movement.find_all()
        with storage_errors("movement_totals"):
            rows = await query.aggregate(
                [{"$group": {"_id": "$type", "total": {"$sum": "$quantity"}}}]
            ).to_list()
        return {MovementType(row["_id"]): row["total"] for row in rows}

    async def movement_history(self, item_id: UUID) -> List[Movement]:
        with storage_errors("movement_history"):
            return await (
                Movement.find(Movement.item_id == item_id).sort(+Movement.item_version).to_list()
            )

    async def movements_between(self, start: datetime, end: datetime) -> List[Movement]:
        with storage_errors("movements_between"):
            return await Movement.find(
                Movement.created_at >= start,
                Movement.created_at <= end,
            ).sort(+Movement.created_at).to_list()
