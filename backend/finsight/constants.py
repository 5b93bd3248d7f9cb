"""
Application Constants

Centralized constants for expense categories, chart colors and period labels.
"""

from typing import Dict, List

# Expense category catalog: ledger key -> display metadata
EXPENSE_CATEGORIES: Dict[str, Dict[str, str]] = {
    "food": {"name": "Food & Dining", "color": "#FF6384"},
    "transportation": {"name": "Transportation", "color": "#36A2EB"},
    "shopping": {"name": "Shopping", "color": "#FFCE56"},
    "entertainment": {"name": "Entertainment", "color": "#4BC0C0"},
    "bills": {"name": "Bills & Utilities", "color": "#9966FF"},
    "healthcare": {"name": "Healthcare", "color": "#FF9F40"},
    "education": {"name": "Education", "color": "#C9CBCF"},
    "travel": {"name": "Travel", "color": "#7BC043"},
    "groceries": {"name": "Groceries", "color": "#F37736"},
    "housing": {"name": "Housing", "color": "#0392CF"},
    "personal": {"name": "Personal Care", "color": "#EE4035"},
    "other": {"name": "Other", "color": "#999999"},
}

# Chart palette, cycled when there are more series entries than colors
CHART_COLORS: List[str] = [
    "#FF6384",
    "#36A2EB",
    "#FFCE56",
    "#4BC0C0",
    "#9966FF",
    "#FF9F40",
    "#C9CBCF",
    "#7BC043",
]

# Human-readable names for the named reporting periods
PERIOD_LABELS: Dict[str, str] = {
    "today": "Today",
    "week": "This Week",
    "month": "This Month",
    "lastMonth": "Last Month",
    "year": "This Year",
    "lastYear": "Last Year",
    "all": "All Time",
    "custom": "Custom Date Range",
}


def category_display_name(key: str, categories: Dict[str, Dict[str, str]] = None) -> str:
    """Resolve a category key to its display name, falling back to the key itself."""
    catalog = EXPENSE_CATEGORIES if categories is None else categories
    entry = catalog.get(key)
    if entry and entry.get("name"):
        return entry["name"]
    return key
