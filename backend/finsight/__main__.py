"""
Command-line report runner

Runs one refresh against the configured ledger API, prints the summary and
writes the requested exports.

Usage:
  python -m finsight --period month --csv --pdf
  python -m finsight --period custom --start 2024-01-01 --end 2024-01-31 --pdf
  python -m finsight --period all --account-created 2022-06-01 --csv
"""

import argparse
import asyncio
import logging
import sys
from datetime import date

from finsight.config import settings
from finsight.currency_utils import format_currency
from finsight.exceptions import AppError
from finsight.models import PeriodSelector, PeriodTag
from finsight.services.expense_api_client import ExpenseApiClient
from finsight.services.report_orchestrator import ReportOrchestrator


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="finsight", description="Generate expense reports")
    parser.add_argument(
        "--period",
        choices=[t.value for t in PeriodTag],
        default=PeriodTag.MONTH.value,
        help="Reporting period (default: month)",
    )
    parser.add_argument("--start", type=date.fromisoformat, help="Custom start date (YYYY-MM-DD)")
    parser.add_argument("--end", type=date.fromisoformat, help="Custom or all-time end date (YYYY-MM-DD)")
    parser.add_argument("--account-created", type=date.fromisoformat, help="Account creation date")
    parser.add_argument("--currency", default=None, help="Display currency code")
    parser.add_argument("--csv", action="store_true", help="Export expenses as CSV")
    parser.add_argument("--pdf", action="store_true", help="Export the PDF report")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    async with ExpenseApiClient() as client:
        orchestrator = ReportOrchestrator(
            client,
            account_created_at=args.account_created,
            currency=args.currency,
        )
        orchestrator.set_period(
            PeriodSelector(tag=PeriodTag(args.period), start_date=args.start, end_date=args.end)
        )
        state = await orchestrator.refresh()

    if state.error:
        print(f"\nError: {state.error.message}")
        return 1
    if state.interval is None:
        print("\nCustom period needs both --start and --end")
        return 1

    summary = state.summary
    cur = orchestrator.currency
    print(f"\nPeriod: {state.interval.start_iso} to {state.interval.end_iso}")
    print(f"Total spent:         {format_currency(summary.total_spent, cur)}")
    print(f"Transactions:        {summary.transaction_count}")
    print(f"Average transaction: {format_currency(summary.average_transaction, cur)}")

    try:
        if args.csv:
            result = orchestrator.export_csv()
            if result is None:
                print(orchestrator.state.notice)
            else:
                print(f"CSV: {result.delivery.path or result.filename}")
        if args.pdf:
            result = orchestrator.export_pdf()
            if result is not None:
                print(f"PDF: {result.delivery.path or result.filename} ({result.page_count} pages)")
    except AppError as e:
        print(f"\nError: {e.message}")
        return 1
    return 0


def main(argv=None):
    args = _parse_args(argv)
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
