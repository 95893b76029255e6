# tests/conftest.py
from types import SimpleNamespace
from uuid import uuid4

import httpx
import pytest
import pytest_asyncio

from inventory_api.dependencies.auth import get_current_user
from inventory_api.main import create_app
from inventory_api.models.item import ItemRecord
from inventory_api.models.user import UserRef, UserRole, UserStatus
from inventory_api.services.adjustment import AdjustmentService
from inventory_api.services.ledger import MovementLedger
from inventory_api.services.projector import derive_status
from inventory_api.store.memory import MemoryStore


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def make_item(store):
    """Put an item straight into the store with an opening quantity."""

    def _make(quantity: int = 100, **fields) -> ItemRecord:
        fields.setdefault("name", "Widget")
        fields.setdefault("sku", f"SKU-{uuid4().hex[:8].upper()}")
        fields.setdefault("category_id", uuid4())
        item = ItemRecord(
            quantity=quantity,
            initial_quantity=quantity,
            status=derive_status(quantity),
            **fields,
        )
        return store.add_item(item)

    return _make


@pytest.fixture
def ledger(store) -> MovementLedger:
    return MovementLedger(store)


@pytest.fixture
def service(store, ledger) -> AdjustmentService:
    return AdjustmentService(store, ledger=ledger)


def fake_user(store: MemoryStore, username: str, role: UserRole) -> SimpleNamespace:
    ref = store.add_user(UserRef(id=uuid4(), username=username, email=f"{username}@example.com"))
    return SimpleNamespace(
        id=ref.id,
        username=username,
        role=role,
        is_active=True,
        status=UserStatus.ACTIVE,
    )


@pytest.fixture
def user_factory(store):
    return lambda username, role: fake_user(store, username, role)


@pytest.fixture
def operator(store) -> SimpleNamespace:
    return fake_user(store, "clerk", UserRole.USER)


@pytest.fixture
def app(store, operator):
    application = create_app(store=store)
    application.dependency_overrides[get_current_user] = lambda: operator
    return application


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
