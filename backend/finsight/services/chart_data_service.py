"""
Chart Data Service

Reshapes a ReportSummary into chart-ready series. Each projection is
computed on demand from the summary it is given; nothing is cached.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from finsight.constants import CHART_COLORS, category_display_name
from finsight.models import ReportSummary

TOP_CATEGORIES_LIMIT = 5


@dataclass
class ChartSeries:
    """Parallel label/value/color lists for one chart."""
    labels: List[str] = field(default_factory=list)
    values: List[float] = field(default_factory=list)
    colors: List[str] = field(default_factory=list)


def _cycle_colors(count: int, palette: List[str]) -> List[str]:
    if not palette:
        return []
    return [palette[i % len(palette)] for i in range(count)]


def category_distribution(
    summary: ReportSummary,
    categories: Optional[Dict[str, Dict[str, str]]] = None,
    palette: List[str] = CHART_COLORS,
) -> ChartSeries:
    """Category share chart, in the summary's category key order."""
    keys = list(summary.category_totals)
    return ChartSeries(
        labels=[category_display_name(k, categories) for k in keys],
        values=[summary.category_totals[k] for k in keys],
        colors=_cycle_colors(len(keys), palette),
    )


def sorted_category_totals(summary: ReportSummary) -> List[tuple]:
    """(key, total) pairs by total descending; equal totals keep key order."""
    return sorted(summary.category_totals.items(), key=lambda kv: kv[1], reverse=True)


def top_categories(
    summary: ReportSummary,
    limit: int = TOP_CATEGORIES_LIMIT,
    categories: Optional[Dict[str, Dict[str, str]]] = None,
    palette: List[str] = CHART_COLORS,
) -> ChartSeries:
    """Largest categories by amount spent."""
    top = sorted_category_totals(summary)[:limit]
    return ChartSeries(
        labels=[category_display_name(k, categories) for k, _ in top],
        values=[amount for _, amount in top],
        colors=_cycle_colors(len(top), palette),
    )


def daily_trend(summary: ReportSummary) -> ChartSeries:
    """Daily spending ordered by calendar date."""
    days = sorted(summary.daily_totals, key=date.fromisoformat)
    return ChartSeries(
        labels=days,
        values=[summary.daily_totals[d] for d in days],
    )
