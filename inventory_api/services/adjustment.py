"""
Adjustment service: the only code path that changes an item's quantity.

Each accepted movement is appended to the ledger and applied to the item row
inside a single store transaction. The item row is updated with a
compare-and-swap on its `version`, so two movements racing on the same item
cannot both commit against the same starting quantity; the loser re-reads
and re-validates.
"""
import asyncio
import logging
from typing import Optional, Tuple
from uuid import UUID

from inventory_api.core.config import settings
from inventory_api.core.exceptions import (
    BUSINESS_ERRORS,
    ConflictError,
    NotFoundError,
    StorageError,
    StorageTimeoutError,
)
from inventory_api.core.result import Result
from inventory_api.models.item import ItemRecord
from inventory_api.models.movement import MovementRecord, MovementType
from inventory_api.schemas.movement import MovementResponse
from inventory_api.services.ledger import MovementLedger, build_view
from inventory_api.services.projector import (
    check_available,
    parse_movement_type,
    project_with_status,
    validate_quantity,
)
from inventory_api.store.base import Store

logger = logging.getLogger(__name__)


class AdjustmentService:
    def __init__(
        self,
        store: Store,
        ledger: Optional[MovementLedger] = None,
        max_retries: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.store = store
        self.ledger = ledger or MovementLedger(store)
        self.max_retries = settings.MOVEMENT_MAX_RETRIES if max_retries is None else max_retries
        self.timeout = settings.MOVEMENT_TX_TIMEOUT_SECONDS if timeout is None else timeout

    async def record_movement(
        self,
        item_id: UUID,
        type,
        quantity,
        reason: Optional[str] = None,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
        user_id: Optional[UUID] = None,
    ) -> Result[MovementResponse]:
        """
        Validate and commit one movement.

        Not-found, validation and insufficient-stock outcomes come back as a
        failed Result with nothing written. StorageError (and its timeout and
        conflict subclasses) is raised after the transaction rolled back.
        Every read the response needs happens before the commit, so a raised
        error always means nothing was written.
        """
        return await self._record(item_id, type, quantity, reason, reference, notes, user_id)

    async def adjust_inventory(
        self,
        item_id: UUID,
        new_quantity: int,
        reason: str,
        user_id: Optional[UUID] = None,
    ) -> Result[MovementResponse]:
        """Set the on-hand quantity to an absolute value via an ADJUSTMENT movement."""
        return await self._record(
            item_id, MovementType.ADJUSTMENT, new_quantity, reason, None, None, user_id,
            describe_adjustment=True,
        )

    async def _record(
        self,
        item_id: UUID,
        type,
        quantity,
        reason: Optional[str],
        reference: Optional[str],
        notes: Optional[str],
        user_id: Optional[UUID],
        describe_adjustment: bool = False,
    ) -> Result[MovementResponse]:
        try:
            item = await self.store.get_item(item_id)
            if item is None:
                raise NotFoundError("Item", item_id)

            movement_type = parse_movement_type(type)
            validate_quantity(movement_type, quantity)
            # early answer for the caller; repeated under the transaction
            check_available(item.id, item.quantity, movement_type, quantity)

            user = await self.store.get_user(user_id) if user_id else None

            draft = dict(
                item_id=item.id,
                type=movement_type,
                quantity=quantity,
                reason=reason,
                reference=reference,
                notes=notes,
                user_id=user_id,
            )
            movement, updated = await self._commit_with_retry(draft, describe_adjustment)
        except BUSINESS_ERRORS as exc:
            logger.info("movement rejected for item %s: %s", item_id, exc.message)
            return Result.failure(exc)

        logger.info(
            "movement %s committed: item=%s type=%s qty=%d %d->%d",
            movement.id, movement.item_id, movement.type.value, movement.quantity,
            movement.quantity_before, movement.quantity_after,
        )
        return Result.success(build_view(movement, updated, user), message="Movement created successfully")

    # ------------------------------------------------------------------
    # Transaction
    # ------------------------------------------------------------------
    async def _commit_with_retry(
        self, draft: dict, describe_adjustment: bool = False
    ) -> Tuple[MovementRecord, ItemRecord]:
        attempts = max(1, self.max_retries)
        for attempt in range(1, attempts + 1):
            try:
                return await asyncio.wait_for(
                    self._apply(draft, describe_adjustment), timeout=self.timeout
                )
            except ConflictError:
                logger.warning(
                    "version conflict on item %s (attempt %d/%d)",
                    draft["item_id"], attempt, attempts,
                )
            except asyncio.TimeoutError as exc:
                logger.error(
                    "movement on item %s did not commit within %.1fs",
                    draft["item_id"], self.timeout,
                )
                raise StorageTimeoutError(
                    f"Movement on item {draft['item_id']} timed out", cause=exc
                ) from exc
            except StorageError:
                logger.exception(
                    "storage failure recording %s movement on item %s",
                    draft["type"].value, draft["item_id"],
                )
                raise

        raise ConflictError(
            f"Item {draft['item_id']} kept changing concurrently; gave up after {attempts} attempts"
        )

    async def _apply(self, draft: dict, describe_adjustment: bool = False) -> Tuple[MovementRecord, ItemRecord]:
        async with self.store.transaction() as tx:
            item = await tx.get_item(draft["item_id"])
            if item is None:
                raise NotFoundError("Item", draft["item_id"])

            new_quantity, status = project_with_status(
                item.quantity, draft["type"], draft["quantity"], item.id
            )
            fields = dict(draft)
            if describe_adjustment:
                # from the row this attempt actually read
                fields["notes"] = f"Inventory adjustment from {item.quantity} to {new_quantity}"
            movement = await self.ledger.append(tx, MovementRecord(
                **fields,
                quantity_before=item.quantity,
                quantity_after=new_quantity,
                item_version=item.version + 1,
            ))
            updated = await tx.set_quantity_and_status(item.id, item.version, new_quantity, status)
        return movement, updated
