"""
CSV Exporter — flat expense export for spreadsheets.

Part of the report_generator_service package.
"""

import csv
import io
import logging
from datetime import date
from typing import Dict, Optional, Sequence

from finsight.constants import category_display_name
from finsight.exceptions import EmptyDatasetError
from finsight.models import ExpenseRecord, PeriodSelector

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["Date", "Description", "Category", "Amount", "Notes"]


def _csv_amount(value) -> str:
    if value is None:
        return ""
    return str(value)


def expenses_to_csv(
    records: Sequence[ExpenseRecord],
    categories: Optional[Dict[str, Dict[str, str]]] = None,
) -> str:
    """
    Serialize expenses as CSV text with a header row.

    Amounts are written as received from the ledger. Fields containing the
    delimiter, quotes or line breaks are quoted, embedded quotes doubled.

    Raises EmptyDatasetError when there is nothing to export.
    """
    if not records:
        raise EmptyDatasetError()

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow(CSV_COLUMNS)
    for exp in records:
        writer.writerow([
            exp.date.isoformat(),
            exp.description or "",
            category_display_name(exp.category, categories),
            _csv_amount(exp.amount),
            exp.notes or "",
        ])

    logger.info(f"Exported {len(records)} expenses to CSV")
    return buffer.getvalue()


def csv_filename(prefix: str, selector: PeriodSelector, today: Optional[date] = None) -> str:
    """e.g. finsight-expenses-month-2024-03-15.csv"""
    stamp = (today or date.today()).isoformat()
    return f"{prefix}-expenses-{selector.tag.value}-{stamp}.csv"
