from fastapi import Depends, Request

from inventory_api.services.adjustment import AdjustmentService
from inventory_api.services.ledger import MovementLedger
from inventory_api.store.base import Store


def get_store(request: Request) -> Store:
    """The store handle built at startup (or injected by tests)."""
    return request.app.state.store


def get_ledger(store: Store = Depends(get_store)) -> MovementLedger:
    return MovementLedger(store)


def get_adjustment_service(ledger: MovementLedger = Depends(get_ledger)) -> AdjustmentService:
    return AdjustmentService(ledger.store, ledger=ledger)
