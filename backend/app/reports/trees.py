"""Running balances for (general, concept) pairs that mix income and expense.

A pair such as member dues that also pays out refunds is tracked week by
week: what it brought into the month, what moved each week, and where it
stands as of today.
"""

import uuid
from collections import defaultdict
from datetime import date
from typing import Iterable, Sequence

from app.catalog.models import CategoryType
from app.catalog.schemas import ConceptResponse, GeneralResponse
from app.reports.schemas import MixedTreeRow, ReportFilters, ReportStats
from app.reports.stats import ReportLabels
from app.reports.weeks import assign_week
from app.transactions.models import TransactionType
from app.transactions.schemas import TransactionRecord

TreeKey = tuple[uuid.UUID | None, uuid.UUID | None]


def _signed(txn: TransactionRecord) -> float:
    return txn.amount if txn.type == TransactionType.INCOME else -txn.amount


def _type_label(value: CategoryType | None, missing: str) -> str:
    return value.value if value is not None else missing


def compare_trees(
    all_transactions: Iterable[TransactionRecord],
    stats: ReportStats,
    filters: ReportFilters,
    categories: Sequence[GeneralResponse],
    concepts: Sequence[ConceptResponse],
    today: date | None = None,
    labels: ReportLabels | None = None,
) -> list[MixedTreeRow]:
    """Weekly rows for every mixed (general, concept) pair of the report period.

    ``carryover_in`` of week 1 is the pair's net position before the period;
    each following week adds the balance of the weeks before it. Rows are
    ordered by week, then by the size of their balance.
    """
    transactions = list(all_transactions)
    if not transactions or stats.weekly_breakdown is None:
        return []

    today = today or date.today()
    labels = labels or ReportLabels()
    weeks = stats.weekly_breakdown.weeks
    generals_by_id = {g.id: g for g in categories}
    concepts_by_id = {c.id: c for c in concepts}

    initial: dict[TreeKey, float] = defaultdict(float)
    rows: dict[tuple[int, TreeKey], MixedTreeRow] = {}

    for txn in transactions:
        key = (txn.general_id, txn.concept_id)

        if filters.start_date is not None and txn.date < filters.start_date:
            initial[key] += _signed(txn)
            continue
        if filters.end_date is not None and txn.date > filters.end_date:
            continue

        week = assign_week(weeks, txn.date)
        if week is None:
            continue

        row = rows.get((week.sequence_number, key))
        if row is None:
            general = generals_by_id.get(txn.general_id)
            concept = concepts_by_id.get(txn.concept_id)
            row = MixedTreeRow(
                week_number=week.sequence_number,
                week=week,
                general_id=txn.general_id,
                general_name=general.name if general else labels.no_general,
                general_type=_type_label(general.category_type if general else None, labels.missing_path),
                concept_id=txn.concept_id,
                concept_name=concept.name if concept else labels.no_concept,
                concept_type=_type_label(concept.category_type if concept else None, labels.missing_path),
            )
            rows[(week.sequence_number, key)] = row

        if txn.type == TransactionType.INCOME:
            row.income += txn.amount
            row.has_income = True
            if txn.date <= today:
                row.today_income += txn.amount
        else:
            row.expense += txn.amount
            row.has_expense = True
            if txn.date <= today:
                row.today_expense += txn.amount
        row.transaction_count += 1
        row.transactions.append(txn)

    by_key: dict[TreeKey, list[MixedTreeRow]] = defaultdict(list)
    for (_, key), row in rows.items():
        row.balance = round(row.income - row.expense, 2)
        by_key[key].append(row)

    for key, key_rows in by_key.items():
        running = initial.get(key, 0.0)
        for row in sorted(key_rows, key=lambda r: r.week_number):
            row.carryover_in = round(running, 2)
            row.running_balance_to_date = round(
                row.carryover_in + row.today_income - row.today_expense, 2
            )
            running += row.balance

    mixed = CategoryType.BOTH.value
    selected = [
        row
        for row in rows.values()
        if (
            (row.has_income and row.has_expense)
            or row.general_type == mixed
            or row.concept_type == mixed
        )
        and row.week_number > 0
    ]
    return sorted(selected, key=lambda r: (r.week_number, -abs(r.balance)))
