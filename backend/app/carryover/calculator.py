"""Pure carryover arithmetic, independent of the store."""

from typing import Iterable

from app.transactions.models import PaymentStatus, TransactionType
from app.transactions.schemas import TransactionRecord


def carryover_balance(
    total_income: float,
    previous_carryover: float,
    total_paid_expenses: float,
) -> float:
    """Balance rolled into the next month, never negative.

    A deficit is not carried forward: it would silently reduce the next
    month's displayed income.
    """
    return max(0.0, round(total_income + previous_carryover - total_paid_expenses, 2))


def month_totals(transactions: Iterable[TransactionRecord]) -> tuple[float, float]:
    """``(total_income, total_paid_expenses)`` for one month of transactions.

    Only expenses stored as exactly ``paid`` consume the balance; unpaid and
    partial expenses are left for the month that settles them.
    """
    total_income = 0.0
    total_paid_expenses = 0.0
    for txn in transactions:
        if txn.type == TransactionType.INCOME:
            total_income += txn.amount or 0.0
        elif txn.type == TransactionType.EXPENSE and txn.status == PaymentStatus.PAID:
            total_paid_expenses += txn.amount or 0.0
    return round(total_income, 2), round(total_paid_expenses, 2)


def usable_previous_carryover(balance: float | None) -> float:
    """Previous month's stored balance, or 0 when absent or non-positive."""
    if balance is None or balance <= 0:
        return 0.0
    return balance
