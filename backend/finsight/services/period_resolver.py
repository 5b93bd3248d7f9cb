"""
Period Resolver

Turns a symbolic period selector into a concrete, inclusive date interval,
and builds the human-readable labels and filename tokens derived from it.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from finsight.config import settings
from finsight.constants import PERIOD_LABELS
from finsight.exceptions import IncompleteSelectorError, ValidationError
from finsight.models import PeriodSelector, PeriodTag, ResolvedInterval

logger = logging.getLogger(__name__)


def _as_date(value: Union[date, datetime, None]) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    return value


def _month_bounds(anchor: date) -> tuple:
    start = anchor.replace(day=1)
    end = start + relativedelta(months=1) - timedelta(days=1)
    return start, end


def resolve_period(
    selector: PeriodSelector,
    account_created_at: Union[date, datetime, None] = None,
    now: Union[date, datetime, None] = None,
    floor: Optional[date] = None,
) -> ResolvedInterval:
    """
    Resolve a period selector into an inclusive [start, end] interval.

    Named periods are full calendar windows around ``now`` (weeks run
    Monday through Sunday). ``all`` starts at the account creation date
    (or ``floor``) and ends today, unless the selector carries an end date.

    Raises IncompleteSelectorError for a custom selector missing a bound.
    """
    today = _as_date(now) or date.today()
    tag = selector.tag

    if tag == PeriodTag.TODAY:
        return ResolvedInterval(start_date=today, end_date=today)

    if tag == PeriodTag.WEEK:
        monday = today - timedelta(days=today.weekday())
        return ResolvedInterval(start_date=monday, end_date=monday + timedelta(days=6))

    if tag == PeriodTag.MONTH:
        start, end = _month_bounds(today)
        return ResolvedInterval(start_date=start, end_date=end)

    if tag == PeriodTag.LAST_MONTH:
        start, end = _month_bounds(today - relativedelta(months=1))
        return ResolvedInterval(start_date=start, end_date=end)

    if tag == PeriodTag.YEAR:
        return ResolvedInterval(
            start_date=date(today.year, 1, 1), end_date=date(today.year, 12, 31),
        )

    if tag == PeriodTag.LAST_YEAR:
        return ResolvedInterval(
            start_date=date(today.year - 1, 1, 1), end_date=date(today.year - 1, 12, 31),
        )

    if tag == PeriodTag.ALL:
        start = _as_date(account_created_at) or floor or settings.all_time_floor
        # A selector end date caps "all time" too. Pending product confirmation.
        end = selector.end_date or today
        if start > end:
            logger.debug(f"All-time start {start} is after end {end}, clamping")
            start = end
        return ResolvedInterval(start_date=start, end_date=end)

    if tag == PeriodTag.CUSTOM:
        if selector.start_date is None or selector.end_date is None:
            raise IncompleteSelectorError()
        if selector.start_date > selector.end_date:
            raise ValidationError(
                f"Custom period starts after it ends: "
                f"{selector.start_date} > {selector.end_date}"
            )
        return ResolvedInterval(start_date=selector.start_date, end_date=selector.end_date)

    raise ValidationError(f"Unknown period: {tag}")


def format_display_date(value: date) -> str:
    """dd/mm/yyyy, the format used throughout the printed report."""
    return value.strftime("%d/%m/%Y")


def describe_period(selector: PeriodSelector, interval: ResolvedInterval) -> str:
    """Period line for the report header."""
    span = f"{format_display_date(interval.start_date)} to {format_display_date(interval.end_date)}"
    if selector.tag in (PeriodTag.CUSTOM, PeriodTag.ALL):
        return f"Period: {span}"
    label = PERIOD_LABELS.get(selector.tag.value, selector.tag.value)
    return f"Period: {label} ({span})"


def period_filename_token(selector: PeriodSelector, interval: ResolvedInterval) -> str:
    """Token used in export filenames: tag, "all-time", or "<start>_to_<end>"."""
    if selector.tag == PeriodTag.CUSTOM:
        return f"{interval.start_iso}_to_{interval.end_iso}"
    if selector.tag == PeriodTag.ALL:
        return "all-time"
    return selector.tag.value
