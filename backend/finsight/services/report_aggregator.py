"""
Report Aggregator

Single-pass aggregation of expense records into the report summary:
total spent, per-category totals, per-day totals and transaction stats.
"""

import logging
import math
from typing import Iterable

from finsight.exceptions import MalformedAmountError
from finsight.models import ExpenseRecord, ReportSummary

logger = logging.getLogger(__name__)


def parse_amount(value, record_id=None) -> float:
    """
    Parse a raw ledger amount into a float.

    Raises MalformedAmountError for missing, non-numeric, NaN or infinite values.
    """
    if value is None or isinstance(value, bool):
        raise MalformedAmountError(value, record_id)
    if isinstance(value, str):
        value = value.strip().replace(",", "")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise MalformedAmountError(value, record_id)
    if math.isnan(amount) or math.isinf(amount):
        raise MalformedAmountError(value, record_id)
    return amount


def aggregate_expenses(records: Iterable[ExpenseRecord]) -> ReportSummary:
    """
    Aggregate records into a fresh ReportSummary.

    Records with malformed amounts are logged and skipped; they do not count
    towards transaction_count. Category keys keep first-seen order.
    """
    total_spent = 0.0
    category_totals = {}
    daily_totals = {}
    count = 0
    skipped = 0

    for record in records:
        try:
            amount = parse_amount(record.amount, record.id)
        except MalformedAmountError as e:
            skipped += 1
            logger.warning(f"Skipping expense: {e.message}")
            continue

        total_spent += amount
        category_totals[record.category] = category_totals.get(record.category, 0.0) + amount
        day = record.date.isoformat()
        daily_totals[day] = daily_totals.get(day, 0.0) + amount
        count += 1

    if skipped:
        logger.info(f"Aggregated {count} expenses, skipped {skipped} with malformed amounts")

    return ReportSummary(
        total_spent=total_spent,
        category_totals=category_totals,
        daily_totals=daily_totals,
        transaction_count=count,
        average_transaction=total_spent / count if count > 0 else 0.0,
    )
