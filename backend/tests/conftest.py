"""
Shared test fixtures for FinSight report tests.

Provides reusable fixtures for:
- Expense record factories
- Mock ledger data source
- Settings pointed at temporary export directories
"""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from finsight.config import Settings
from finsight.models import Budget, ExpenseRecord


# ---------------------------------------------------------------------------
# Sample data factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_expense():
    """Factory for ExpenseRecord with sensible defaults."""
    counter = {"n": 0}

    def _make(amount=10.0, category="food", day=date(2024, 3, 1), description=None, notes=None, id=None):
        counter["n"] += 1
        return ExpenseRecord(
            id=id if id is not None else counter["n"],
            amount=amount,
            category=category,
            date=day,
            description=description if description is not None else f"Expense {counter['n']}",
            notes=notes,
        )

    return _make


@pytest.fixture
def sample_expenses(make_expense):
    """A small mixed dataset across three categories and three days."""
    return [
        make_expense(12.50, "food", date(2024, 3, 1), "Lunch"),
        make_expense(40.00, "transportation", date(2024, 3, 1), "Fuel"),
        make_expense(7.25, "food", date(2024, 3, 2), "Coffee beans"),
        make_expense(120.00, "bills", date(2024, 3, 5), "Electricity"),
        make_expense("15.75", "transportation", date(2024, 3, 5), "Train"),
    ]


@pytest.fixture
def sample_budgets():
    return [Budget(id=1, category="food", amount=300.0, period="monthly")]


# ---------------------------------------------------------------------------
# Mock ledger data source
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_data_source(sample_expenses, sample_budgets):
    """Data source whose fetches resolve immediately with the sample data."""
    source = MagicMock()
    source.fetch_expenses = AsyncMock(return_value=sample_expenses)
    source.fetch_budgets = AsyncMock(return_value=sample_budgets)
    return source


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def test_settings(tmp_path):
    """Settings writing exports under tmp_path, native delivery off."""
    return Settings(
        _env_file=None,
        native_filesystem=False,
        documents_dir=tmp_path / "Documents",
        downloads_dir=tmp_path / "downloads",
        report_logo_path=None,
        export_prefix="finsight",
    )
