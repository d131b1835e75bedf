import uuid
from datetime import date, datetime, timezone

import pytest
from hypothesis import given, settings, strategies as st
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.carryover import service
from app.carryover.calculator import carryover_balance, month_totals, usable_previous_carryover
from app.carryover.models import MonthlyCarryover
from app.core.exceptions import CarryoverCalculationError, CarryoverLookupError, ConflictError
from app.transactions.models import PaymentStatus, Transaction, TransactionType
from app.transactions.schemas import TransactionRecord

amounts = st.floats(min_value=0, max_value=1_000_000, allow_nan=False, allow_infinity=False)


def _record(type, amount, status=PaymentStatus.PAID):
    return TransactionRecord(
        id=uuid.uuid4(), type=type, amount=amount, date=date(2026, 1, 15), status=status
    )


async def _store(db, year, month, balance):
    row = MonthlyCarryover(
        key=f"{year}-{month:02d}",
        year=year,
        month=month,
        previous_year=year if month > 1 else year - 1,
        previous_month=month - 1 if month > 1 else 12,
        total_income=0.0,
        previous_carryover=0.0,
        total_paid_expenses=0.0,
        carryover_balance=balance,
        transactions_count=0,
        calculated_at=datetime.now(timezone.utc),
    )
    db.add(row)
    await db.commit()
    return row


class TestCalculator:
    def test_positive_balance(self):
        assert carryover_balance(10_000, 2_000, 5_000) == 7_000

    def test_deficit_is_clamped(self):
        assert carryover_balance(1_000, 0, 4_000) == 0

    @given(income=amounts, previous=amounts, paid=amounts)
    @settings(max_examples=200)
    def test_balance_is_never_negative(self, income, previous, paid):
        assert carryover_balance(income, previous, paid) >= 0

    def test_only_fully_paid_expenses_consume_the_balance(self):
        transactions = [
            _record(TransactionType.INCOME, 1_000),
            _record(TransactionType.EXPENSE, 300, PaymentStatus.PAID),
            _record(TransactionType.EXPENSE, 200, PaymentStatus.PARTIAL),
            _record(TransactionType.EXPENSE, 100, PaymentStatus.UNPAID),
        ]

        assert month_totals(transactions) == (1_000, 300)

    @pytest.mark.parametrize("balance, expected", [(None, 0.0), (-50.0, 0.0), (0.0, 0.0), (120.5, 120.5)])
    def test_usable_previous_carryover(self, balance, expected):
        assert usable_previous_carryover(balance) == expected


class TestComputeCarryover:
    @pytest.mark.asyncio
    async def test_income_plus_previous_minus_paid_expenses(self, db, add_transaction):
        await _store(db, 2026, 1, 2_000)
        await add_transaction(TransactionType.INCOME, 10_000, date(2026, 1, 5))
        await add_transaction(TransactionType.EXPENSE, 5_000, date(2026, 1, 20), PaymentStatus.PAID)

        record = await service.compute_carryover(db, 2026, 2)

        assert record.key == "2026-02"
        assert (record.previous_year, record.previous_month) == (2026, 1)
        assert record.total_income == 10_000
        assert record.previous_carryover == 2_000
        assert record.total_paid_expenses == 5_000
        assert record.carryover_balance == 7_000
        assert record.transactions_count == 2

    @pytest.mark.asyncio
    async def test_deficit_is_not_carried(self, db, add_transaction):
        await add_transaction(TransactionType.INCOME, 1_000, date(2026, 1, 5))
        await add_transaction(TransactionType.EXPENSE, 4_000, date(2026, 1, 20), PaymentStatus.PAID)

        record = await service.compute_carryover(db, 2026, 2)

        assert record.carryover_balance == 0

    @pytest.mark.asyncio
    async def test_unpaid_and_partial_expenses_are_ignored(self, db, add_transaction):
        await add_transaction(TransactionType.INCOME, 1_000, date(2026, 1, 5))
        await add_transaction(TransactionType.EXPENSE, 400, date(2026, 1, 6))
        await add_transaction(
            TransactionType.EXPENSE, 500, date(2026, 1, 7), PaymentStatus.PARTIAL, total_paid=200
        )

        record = await service.compute_carryover(db, 2026, 2)

        assert record.total_paid_expenses == 0
        assert record.carryover_balance == 1_000

    @pytest.mark.asyncio
    async def test_january_reads_december_of_previous_year(self, db, add_transaction):
        await add_transaction(TransactionType.INCOME, 800, date(2025, 12, 31))
        await add_transaction(TransactionType.INCOME, 999, date(2026, 1, 1))

        record = await service.compute_carryover(db, 2026, 1)

        assert (record.previous_year, record.previous_month) == (2025, 12)
        assert record.total_income == 800

    @pytest.mark.asyncio
    async def test_lookup_is_one_hop_only(self, db, add_transaction):
        # November has a balance, December was never computed
        await _store(db, 2025, 11, 5_000)
        await add_transaction(TransactionType.INCOME, 100, date(2025, 12, 10))

        record = await service.compute_carryover(db, 2026, 1)

        assert record.previous_carryover == 0
        assert record.carryover_balance == 100


class TestPersistence:
    @pytest.mark.asyncio
    async def test_recalculation_overwrites_the_same_key(self, db, add_transaction):
        await add_transaction(TransactionType.INCOME, 100, date(2026, 1, 10))
        first = await service.calculate_and_save_carryover(db, 2026, 2)

        await add_transaction(TransactionType.INCOME, 50, date(2026, 1, 11))
        second = await service.calculate_and_save_carryover(db, 2026, 2)

        count = await db.scalar(select(func.count(MonthlyCarryover.id)))
        assert count == 1
        assert second.id == first.id
        assert second.carryover_balance == 150

    @pytest.mark.asyncio
    async def test_get_or_compute_returns_stored_record(self, db, add_transaction):
        await add_transaction(TransactionType.INCOME, 100, date(2026, 1, 10))
        first = await service.get_or_compute(db, 2026, 2)

        # New data does not trigger a recomputation once the month is stored
        await add_transaction(TransactionType.INCOME, 900, date(2026, 1, 12))
        second = await service.get_or_compute(db, 2026, 2)

        assert second.id == first.id
        assert second.carryover_balance == 100
        assert second.calculated_at == first.calculated_at

    @pytest.mark.asyncio
    async def test_missing_month_is_none(self, db):
        assert await service.get_carryover_for_month(db, 2026, 2) is None

    @pytest.mark.asyncio
    async def test_store_failure_is_a_lookup_error(self, db, monkeypatch):
        async def broken_execute(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(db, "execute", broken_execute)

        with pytest.raises(CarryoverLookupError):
            await service.get_carryover_for_month(db, 2026, 2)

    @pytest.mark.asyncio
    async def test_list_is_newest_first(self, db):
        await _store(db, 2025, 12, 10)
        await _store(db, 2026, 2, 30)
        await _store(db, 2026, 1, 20)

        records = await service.list_carryovers(db)

        assert [r.key for r in records] == ["2026-02", "2026-01", "2025-12"]


class TestCheckAndCalculate:
    @pytest.mark.asyncio
    async def test_calculates_then_reports_cached(self, db, add_transaction):
        await add_transaction(TransactionType.INCOME, 250, date(2026, 9, 3))

        first = await service.check_and_calculate_carryover_if_needed(db, date(2026, 10, 19))
        second = await service.check_and_calculate_carryover_if_needed(db, date(2026, 10, 20))

        assert first.calculated and not first.already_calculated
        assert first.data.key == "2026-10"
        assert first.data.carryover_balance == 250
        assert second.already_calculated and not second.calculated
        assert not second.error

    @pytest.mark.asyncio
    async def test_failure_is_reported_not_raised(self, db, monkeypatch):
        async def boom(*args, **kwargs):
            raise CarryoverCalculationError("store unavailable")

        monkeypatch.setattr(service, "calculate_and_save_carryover", boom)

        result = await service.check_and_calculate_carryover_if_needed(db, date(2026, 10, 19))

        assert result.error
        assert not result.calculated
        assert "store unavailable" in result.message


class TestStatusAndPreview:
    @pytest.mark.asyncio
    async def test_status_of_uncalculated_month(self, db):
        status = await service.get_carryover_status(db, 2026, 3)

        assert not status.calculated
        assert status.data is None

    @pytest.mark.asyncio
    async def test_status_of_calculated_month(self, db):
        await _store(db, 2026, 3, 75)

        status = await service.get_carryover_status(db, 2026, 3)

        assert status.calculated
        assert status.has_positive_balance
        assert status.data.carryover_balance == 75

    @pytest.mark.asyncio
    async def test_preview_does_not_persist(self, db, add_transaction):
        await add_transaction(TransactionType.INCOME, 500, date(2026, 2, 1))
        await add_transaction(TransactionType.EXPENSE, 120, date(2026, 2, 2))

        preview = await service.preview_carryover(db, 2026, 3)

        assert preview.computed.carryover_balance == 500
        assert preview.stored is None
        assert not preview.matches_stored
        assert preview.pending_expenses_previous_month == 120
        assert await service.get_carryover_for_month(db, 2026, 3) is None

        await service.calculate_and_save_carryover(db, 2026, 3)
        assert (await service.preview_carryover(db, 2026, 3)).matches_stored


class TestProcessMonthlyCarryover:
    @pytest.mark.asyncio
    async def test_books_carryover_income_once(self, db, add_transaction):
        await add_transaction(TransactionType.INCOME, 1_200, date(2026, 9, 10))
        await add_transaction(TransactionType.EXPENSE, 200, date(2026, 9, 11), PaymentStatus.PAID)
        today = date(2026, 10, 19)

        result = await service.process_monthly_carryover(
            db, "Balance Carryover", "Carried Balance", today
        )

        assert result.carryover.carryover_balance == 1_000
        assert result.transaction is not None
        assert result.transaction.is_carryover
        assert result.transaction.amount == 1_000
        assert result.transaction.status == PaymentStatus.PAID
        assert (result.transaction.carryover_from_year, result.transaction.carryover_from_month) == (2026, 9)

        with pytest.raises(ConflictError):
            await service.process_monthly_carryover(db, "Balance Carryover", "Carried Balance", today)

        booked = await db.scalar(
            select(func.count(Transaction.id)).where(Transaction.is_carryover.is_(True))
        )
        assert booked == 1

    @pytest.mark.asyncio
    async def test_nothing_booked_without_balance(self, db):
        result = await service.process_monthly_carryover(
            db, "Balance Carryover", "Carried Balance", date(2026, 10, 19)
        )

        assert result.transaction is None
        assert result.carryover.carryover_balance == 0
