from __future__ import annotations

import uuid
from datetime import date
from typing import Any, Callable

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from app.catalog.models import CategoryType, Concept, GeneralCategory, Subconcept
from app.config import Settings
from app.database import build_engine, build_session_factory, create_all
from app.main import create_app
from app.transactions.models import PaymentStatus, Transaction, TransactionType
from app.transactions.schemas import TransactionRecord

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url=TEST_DATABASE_URL,
        scheduler_enabled=False,
    )


@pytest_asyncio.fixture
async def engine():
    # A single shared connection keeps the in-memory database alive across sessions
    engine = build_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return build_session_factory(engine)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(settings: Settings, session_factory):
    app = create_app(settings)
    app.state.session_factory = session_factory
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Data builders
# ---------------------------------------------------------------------------


@pytest.fixture
def make_record() -> Callable[..., TransactionRecord]:
    """Build an engine record; keyword arguments override the defaults."""

    def _make(**overrides: Any) -> TransactionRecord:
        data: dict[str, Any] = {
            "id": uuid.uuid4(),
            "type": TransactionType.EXPENSE,
            "amount": 100.0,
            "date": date(2026, 2, 10),
        }
        data.update(overrides)
        return TransactionRecord(**data)

    return _make


@pytest.fixture
def add_transaction(db):
    """Insert a ledger row directly, bypassing the payment workflow."""

    async def _add(
        type: TransactionType,
        amount: float,
        day: date,
        status: PaymentStatus | None = None,
        total_paid: float | None = None,
        **fields: Any,
    ) -> Transaction:
        if status is None:
            status = PaymentStatus.PAID if type == TransactionType.INCOME else PaymentStatus.UNPAID
        if total_paid is None:
            total_paid = amount if status == PaymentStatus.PAID else 0.0
        transaction = Transaction(
            type=type,
            amount=amount,
            date=day,
            status=status,
            total_paid=total_paid,
            balance=max(0.0, amount - total_paid),
            **fields,
        )
        db.add(transaction)
        await db.commit()
        await db.refresh(transaction)
        return transaction

    return _add


@pytest_asyncio.fixture
async def catalog_tree(db) -> dict[str, Any]:
    """A general with one concept and one subconcept, plus a mixed-type general."""
    dues = GeneralCategory(name="Dues", category_type=CategoryType.INCOME)
    events = GeneralCategory(name="Events", category_type=CategoryType.BOTH)
    db.add_all([dues, events])
    await db.flush()

    monthly = Concept(name="Monthly", general_id=dues.id, category_type=CategoryType.INCOME)
    tournament = Concept(name="Tournament", general_id=events.id)
    db.add_all([monthly, tournament])
    await db.flush()

    senior = Subconcept(name="Senior", concept_id=monthly.id)
    db.add(senior)
    await db.commit()

    return {
        "dues": dues,
        "events": events,
        "monthly": monthly,
        "tournament": tournament,
        "senior": senior,
    }
