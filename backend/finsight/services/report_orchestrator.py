"""
Report Orchestrator

Owns the current period selection and the latest report snapshot for one
reporting context. refresh() runs the pipeline:

    selector -> interval -> fetch (expenses, budgets) -> aggregate

Ledger change notifications re-run it. Exports render from the current
snapshot and never trigger a fetch.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Callable, List, Optional, Protocol, Sequence, Tuple, Union

from finsight.config import Settings, settings as default_settings
from finsight.exceptions import (
    AppError,
    EmptyDatasetError,
    ExportFailedError,
    FetchFailedError,
    IncompleteSelectorError,
    ValidationError,
)
from finsight.models import Budget, ExpenseRecord, PeriodSelector, PeriodTag, ReportSummary, ResolvedInterval
from finsight.services.chart_data_service import (
    ChartSeries,
    category_distribution,
    daily_trend,
    top_categories,
)
from finsight.services.event_bus import EventBus, LedgerEvent
from finsight.services.period_resolver import resolve_period
from finsight.services.report_aggregator import aggregate_expenses
from finsight.services.report_generator_service import (
    DeliveryResult,
    csv_filename,
    deliver_export,
    expenses_to_csv,
    generate_report_pdf,
)
from finsight.services.report_generator_service.delivery import DownloadHook

logger = logging.getLogger(__name__)


class ExpenseDataSource(Protocol):
    async def fetch_expenses(self, start_date: str, end_date: str) -> Sequence[ExpenseRecord]:
        ...

    async def fetch_budgets(self) -> Sequence[Budget]:
        ...


@dataclass
class ReportState:
    """
    Snapshot of one reporting context. Replaced wholesale by each refresh.

    ``resolved_selector`` is the selector ``interval``/``records``/``summary``
    were produced from; it is None until a refresh for the current
    selector has completed.
    """
    selector: PeriodSelector
    resolved_selector: Optional[PeriodSelector] = None
    interval: Optional[ResolvedInterval] = None
    records: Tuple[ExpenseRecord, ...] = ()
    budgets: Tuple[Budget, ...] = ()
    summary: ReportSummary = field(default_factory=ReportSummary.empty)
    loading: bool = False
    error: Optional[AppError] = None
    notice: Optional[str] = None


@dataclass
class ExportResult:
    filename: str
    delivery: DeliveryResult
    page_count: Optional[int] = None


class ReportOrchestrator:
    """
    Coordinates period selection, fetching, aggregation and exports.

    Overlapping refreshes are not serialized: each one takes a new
    generation number and only the latest generation may publish results.
    """

    def __init__(
        self,
        data_source: ExpenseDataSource,
        account_created_at: Union[date, datetime, None] = None,
        currency: Optional[str] = None,
        clock: Optional[Callable[[], date]] = None,
        download: Optional[DownloadHook] = None,
        config: Optional[Settings] = None,
    ):
        self._source = data_source
        self._settings = config or default_settings
        self._account_created_at = account_created_at
        self._clock = clock or date.today
        self._download = download
        self._generation = 0
        self._unsubscribers: List[Callable[[], None]] = []
        self.currency = (currency or self._settings.default_currency).upper()
        self.state = ReportState(selector=PeriodSelector())

    # ------------------------------------------------------------------
    # Period selection
    # ------------------------------------------------------------------

    @property
    def selector(self) -> PeriodSelector:
        return self.state.selector

    def set_period(self, selector: Union[PeriodSelector, PeriodTag, str]) -> bool:
        """
        Select a reporting period. Returns True when it is complete enough to refresh.

        Choosing a named period by tag drops any custom bounds; choosing
        "custom" keeps bounds already entered for a custom range.
        """
        if not isinstance(selector, PeriodSelector):
            tag = PeriodTag(selector)
            current = self.state.selector
            if tag == PeriodTag.CUSTOM and current.tag == PeriodTag.CUSTOM:
                selector = current
            else:
                selector = PeriodSelector(tag=tag)

        logger.info(f"Report period set to {selector.tag.value}")
        self._select(selector)
        return selector.is_complete

    def set_custom_bounds(self, start: Optional[date], end: Optional[date]) -> bool:
        """
        Set custom range bounds. Returns True once both are present.

        While "all" is selected only the end bound matters: it caps the
        all-time range instead of switching to a custom one.
        """
        tag = PeriodTag.ALL if self.state.selector.tag == PeriodTag.ALL else PeriodTag.CUSTOM
        selector = PeriodSelector(tag=tag, start_date=start, end_date=end)
        self._select(selector)
        return selector.is_complete

    def _select(self, selector: PeriodSelector):
        if selector == self.state.selector:
            self.state = replace(self.state, notice=None)
            return
        # Data resolved for the old selector must not be exported under the new one
        self._generation += 1
        self.state = ReportState(selector=selector)

    def set_currency(self, currency: str):
        """Display currency for exports; callers publish currencyChanged to refresh."""
        self.currency = currency.strip().upper()

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _publish(self, generation: int, **changes) -> bool:
        if generation != self._generation:
            logger.info(f"Discarding stale report refresh #{generation} (current #{self._generation})")
            return False
        self.state = replace(self.state, loading=False, **changes)
        return True

    async def refresh(self) -> ReportState:
        """
        Re-resolve the period, fetch and re-aggregate.

        Safe to call redundantly. Fetch failures are recorded on
        state.error with an empty summary; the orchestrator stays usable.
        """
        self._generation += 1
        generation = self._generation
        selector = self.state.selector

        try:
            interval = resolve_period(
                selector,
                self._account_created_at,
                now=self._clock(),
                floor=self._settings.all_time_floor,
            )
        except IncompleteSelectorError:
            logger.debug("Custom period incomplete, nothing to aggregate yet")
            self._publish(
                generation, resolved_selector=selector, interval=None, records=(), budgets=(),
                summary=ReportSummary.empty(), error=None,
            )
            return self.state
        except ValidationError as e:
            self._publish(
                generation, resolved_selector=selector, interval=None, records=(), budgets=(),
                summary=ReportSummary.empty(), error=e,
            )
            return self.state

        self.state = replace(self.state, loading=True)
        logger.info(f"Refreshing report #{generation}: {interval.start_iso} to {interval.end_iso}")

        try:
            expenses = await self._source.fetch_expenses(interval.start_iso, interval.end_iso)
            budgets = await self._source.fetch_budgets()
        except Exception as e:
            error = e if isinstance(e, FetchFailedError) else FetchFailedError(
                f"Failed to load report data: {e}", cause=e,
            )
            if self._publish(
                generation, resolved_selector=selector, interval=interval, records=(), budgets=(),
                summary=ReportSummary.empty(), error=error,
            ):
                logger.error(f"Error fetching report data: {e}", exc_info=True)
            return self.state

        records = tuple(expenses or ())
        summary = aggregate_expenses(records)
        self._publish(
            generation,
            resolved_selector=selector,
            interval=interval,
            records=records,
            budgets=tuple(budgets or ()),
            summary=summary,
            error=None,
        )
        return self.state

    # ------------------------------------------------------------------
    # Change notifications
    # ------------------------------------------------------------------

    async def _on_ledger_event(self):
        await self.refresh()

    def attach(self, bus: EventBus):
        """Refresh on every ledger change notification published on ``bus``."""
        for event in LedgerEvent:
            self._unsubscribers.append(bus.subscribe(event, self._on_ledger_event))

    def close(self):
        """Remove every subscription made by attach()."""
        while self._unsubscribers:
            self._unsubscribers.pop()()

    # ------------------------------------------------------------------
    # Chart projections
    # ------------------------------------------------------------------

    def category_chart(self) -> ChartSeries:
        return category_distribution(self.state.summary)

    def top_categories_chart(self) -> ChartSeries:
        return top_categories(self.state.summary)

    def daily_trend_chart(self) -> ChartSeries:
        return daily_trend(self.state.summary)

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------

    def _deliver(self, filename: str, content, download: Optional[DownloadHook]) -> DeliveryResult:
        return deliver_export(
            filename,
            content,
            native=self._settings.native_filesystem,
            documents_dir=self._settings.documents_dir,
            downloads_dir=self._settings.downloads_dir,
            download=download or self._download,
        )

    def _skip_export(self, kind: str, message: str) -> None:
        logger.info(f"{kind} export skipped: {message}")
        self.state = replace(self.state, notice=message)

    def _export_blocker(self, state: ReportState) -> Optional[str]:
        """Why the snapshot cannot be exported for the current selector, or None."""
        if not state.selector.is_complete:
            return "Select both a start and an end date to export a report"
        if state.resolved_selector != state.selector:
            return "The report for the selected period is still loading"
        if state.interval is None:
            return state.error.message if state.error else "No report period resolved"
        return None

    def export_csv(self, download: Optional[DownloadHook] = None) -> Optional[ExportResult]:
        """
        Export the current expenses as CSV.

        Returns None (with state.notice set) when there is nothing to export
        or the snapshot does not belong to the selected period yet.
        """
        state = self.state
        blocker = self._export_blocker(state)
        if blocker:
            self._skip_export("CSV", blocker)
            return None
        try:
            text = expenses_to_csv(state.records)
        except EmptyDatasetError as e:
            self._skip_export("CSV", e.message)
            return None
        except Exception as e:
            logger.error(f"CSV export failed: {e}", exc_info=True)
            raise ExportFailedError(f"CSV export failed: {e}", cause=e) from e

        filename = csv_filename(self._settings.export_prefix, state.resolved_selector, today=self._clock())
        return ExportResult(filename=filename, delivery=self._deliver(filename, text, download))

    def export_pdf(self, download: Optional[DownloadHook] = None) -> Optional[ExportResult]:
        """
        Render and deliver the PDF report for the current snapshot.

        Returns None (with state.notice set) while no period is resolved for
        the current selector. Raises ExportFailedError when rendering or the
        final delivery fails.
        """
        state = self.state
        blocker = self._export_blocker(state)
        if blocker:
            self._skip_export("PDF", blocker)
            return None

        doc = generate_report_pdf(
            state.summary,
            state.records,
            state.interval,
            state.resolved_selector,
            currency=self.currency,
            logo_path=self._settings.report_logo_path,
            title=self._settings.report_title,
            prefix=self._settings.export_prefix,
        )
        delivery = self._deliver(doc.filename, doc.content, download)
        return ExportResult(filename=doc.filename, delivery=delivery, page_count=doc.page_count)
