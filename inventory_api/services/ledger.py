"""
Movement ledger: the append-only history of stock movements and the queries
over it. Appends happen only inside an adjustment transaction; everything
else here is a read.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from inventory_api.core.config import settings
from inventory_api.core.exceptions import BUSINESS_ERRORS, NotFoundError, ValidationError
from inventory_api.core.result import Result
from inventory_api.core.timeutil import as_naive_utc, utc_now
from inventory_api.models.item import ItemRecord
from inventory_api.models.movement import MovementRecord, MovementType
from inventory_api.models.user import UserRef
from inventory_api.schemas.common import PaginationInfo
from inventory_api.schemas.movement import (
    ItemSummary,
    MonthlyMovementTotals,
    MovementPage,
    MovementResponse,
    MovementStats,
    ReconcileReport,
)
from inventory_api.services.projector import parse_movement_type, replay
from inventory_api.store.base import MovementFilter, PageParams, Store, Transaction

logger = logging.getLogger(__name__)


def check_page(params: PageParams) -> PageParams:
    if params.page < 1:
        raise ValidationError("page", "Page must be 1 or greater", params.page)
    if not 1 <= params.limit <= settings.MAX_PAGE_SIZE:
        raise ValidationError(
            "limit", f"Limit must be between 1 and {settings.MAX_PAGE_SIZE}", params.limit
        )
    if params.sort_order not in ("asc", "desc"):
        raise ValidationError("sort_order", "Sort order must be 'asc' or 'desc'", params.sort_order)
    return params


class MovementLedger:
    def __init__(self, store: Store):
        self.store = store

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    async def append(self, tx: Transaction, movement: MovementRecord) -> MovementRecord:
        """Insert one entry inside the caller's transaction."""
        return await tx.insert_movement(movement)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    async def to_view(self, movement: MovementRecord, item: Optional[ItemRecord] = None) -> MovementResponse:
        if item is None:
            item = await self.store.get_item(movement.item_id)
        user = await self.store.get_user(movement.user_id) if movement.user_id else None
        return build_view(movement, item, user)

    async def to_views(self, movements: Iterable[MovementRecord]) -> List[MovementResponse]:
        movements = list(movements)
        items: Dict[UUID, Optional[ItemRecord]] = {}
        for movement in movements:
            if movement.item_id not in items:
                items[movement.item_id] = await self.store.get_item(movement.item_id)
        return [await self.to_view(m, items[m.item_id]) for m in movements]

    async def _page(self, criteria: MovementFilter, params: PageParams) -> MovementPage:
        check_page(params)
        movements, total = await self.store.find_movements(criteria, params)
        return MovementPage(
            movements=await self.to_views(movements),
            pagination=PaginationInfo.build(params.page, params.limit, total),
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def find_by_id(self, movement_id: UUID) -> Result[MovementResponse]:
        movement = await self.store.get_movement(movement_id)
        if movement is None:
            return Result.failure(NotFoundError("Movement", movement_id))
        return Result.success(await self.to_view(movement))

    async def find_all(self, params: PageParams, search: Optional[str] = None) -> Result[MovementPage]:
        try:
            return Result.success(await self._page(MovementFilter(search=search or None), params))
        except BUSINESS_ERRORS as exc:
            return Result.failure(exc)

    async def find_by_item(self, item_id: UUID, params: PageParams) -> Result[MovementPage]:
        try:
            if await self.store.get_item(item_id) is None:
                raise NotFoundError("Item", item_id)
            return Result.success(await self._page(MovementFilter(item_id=item_id), params))
        except BUSINESS_ERRORS as exc:
            return Result.failure(exc)

    async def find_by_type(self, movement_type, params: PageParams) -> Result[MovementPage]:
        try:
            parsed = parse_movement_type(movement_type)
            return Result.success(await self._page(MovementFilter(type=parsed), params))
        except BUSINESS_ERRORS as exc:
            return Result.failure(exc)

    async def find_by_date_range(self, start: datetime, end: datetime, params: PageParams) -> Result[MovementPage]:
        start, end = as_naive_utc(start), as_naive_utc(end)
        try:
            if start > end:
                raise ValidationError("start_date", "Start date must be before end date", start.isoformat())
            return Result.success(await self._page(MovementFilter(start=start, end=end), params))
        except BUSINESS_ERRORS as exc:
            return Result.failure(exc)

    async def recent(self, limit: int = 10) -> Result[List[MovementResponse]]:
        if not 1 <= limit <= settings.MAX_PAGE_SIZE:
            return Result.failure(
                ValidationError("limit", f"Limit must be between 1 and {settings.MAX_PAGE_SIZE}", limit)
            )
        movements = await self.store.recent_movements(limit)
        return Result.success(await self.to_views(movements))

    async def aggregate(self, item_id: Optional[UUID] = None) -> Result[MovementStats]:
        if item_id is not None and await self.store.get_item(item_id) is None:
            return Result.failure(NotFoundError("Item", item_id))
        totals = await self.store.movement_totals(item_id)
        return Result.success(MovementStats(
            total_in=totals.get(MovementType.IN, 0),
            total_out=totals.get(MovementType.OUT, 0),
            total_adjustments=totals.get(MovementType.ADJUSTMENT, 0),
            total_transfers=totals.get(MovementType.TRANSFER, 0),
            total_returns=totals.get(MovementType.RETURN, 0),
        ))

    async def history(self, item_id: UUID) -> List[MovementRecord]:
        return await self.store.movement_history(item_id)

    async def reconcile(self, item_id: UUID) -> Result[ReconcileReport]:
        item = await self.store.get_item(item_id)
        if item is None:
            return Result.failure(NotFoundError("Item", item_id))

        history = await self.history(item_id)
        replay_error = None
        try:
            replayed = replay(item.initial_quantity, history)
        except BUSINESS_ERRORS as exc:
            # the history itself is broken, e.g. an OUT the seed cannot cover
            replayed, replay_error = None, exc.message

        report = ReconcileReport(
            item_id=item.id,
            initial_quantity=item.initial_quantity,
            movement_count=len(history),
            stored_quantity=item.quantity,
            replayed_quantity=replayed,
            consistent=replayed == item.quantity,
            replay_error=replay_error,
        )
        if not report.consistent:
            logger.error(
                "ledger drift on item %s: stored=%d replayed=%s error=%s",
                item.id, item.quantity, replayed, replay_error,
            )
        return Result.success(report)

    async def monthly_totals(self, months: int = 12, now: Optional[datetime] = None) -> Result[List[MonthlyMovementTotals]]:
        if not 1 <= months <= 120:
            return Result.failure(ValidationError("months", "Months must be between 1 and 120", months))

        now = now or utc_now()
        year, month = now.year, now.month - months
        while month < 1:
            month += 12
            year -= 1
        start = datetime(year, month, 1)

        buckets: Dict[str, Dict[MovementType, int]] = {}
        for movement in await self.store.movements_between(start, now):
            key = movement.created_at.strftime("%Y-%m")
            totals = buckets.setdefault(key, {t: 0 for t in MovementType})
            totals[movement.type] += movement.quantity

        return Result.success([
            MonthlyMovementTotals(month=key, totals=buckets[key]) for key in sorted(buckets)
        ])


def build_view(
    movement: MovementRecord, item: Optional[ItemRecord], user: Optional[UserRef]
) -> MovementResponse:
    """Assemble a movement view from already-loaded parts; no I/O."""
    return MovementResponse(
        id=movement.id,
        item_id=movement.item_id,
        item=_summary(item),
        type=movement.type,
        quantity=movement.quantity,
        quantity_before=movement.quantity_before,
        quantity_after=movement.quantity_after,
        reason=movement.reason,
        reference=movement.reference,
        notes=movement.notes,
        user=user,
        created_at=movement.created_at,
    )


def _summary(item: Optional[ItemRecord]) -> Optional[ItemSummary]:
    if item is None:
        return None
    return ItemSummary(
        id=item.id, name=item.name, sku=item.sku, quantity=item.quantity, status=item.status
    )
