"""
PDF Generator — expense report generation with fpdf2.

Part of the report_generator_service package.
"""

import logging
import re as _re
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

from fpdf import FPDF
from PIL import Image

from finsight.config import settings
from finsight.constants import category_display_name
from finsight.currency_utils import CurrencyFormatter, format_currency
from finsight.exceptions import ExportFailedError, MalformedAmountError
from finsight.models import ExpenseRecord, PeriodSelector, ReportSummary, ResolvedInterval
from finsight.services.chart_data_service import sorted_category_totals
from finsight.services.period_resolver import describe_period, period_filename_token
from finsight.services.report_aggregator import parse_amount
from finsight.services.report_generator_service.layout import (
    CATEGORY_BAR_HEIGHT,
    LOGO_GAP,
    LOGO_TOP,
    PAGE_WIDTH,
    PERIOD_LINE_HEIGHT,
    ROW_HEIGHT,
    SECTION_GAP,
    SECTION_HEADER_HEIGHT,
    SECTION_TITLE_HEIGHT,
    SIDE_MARGIN,
    SUMMARY_BLOCK_HEIGHT,
    SUMMARY_BOX_HEIGHT,
    TABLE_HEADER_HEIGHT,
    TITLE_HEIGHT,
    TOP_MARGIN,
    LayoutCursor,
    Placement,
    scale_logo,
)

logger = logging.getLogger(__name__)

BRAND_RGB = (32, 70, 140)
TABLE_HEADER_RGB = (30, 64, 175)
BODY_RGB = (40, 40, 40)
MUTED_RGB = (60, 60, 60)
SUMMARY_FILL_RGB = (230, 240, 255)
CATEGORY_FILL_RGB = (220, 230, 250)
BAND_FILL_RGB = (245, 248, 255)

# Sub-table columns (x positions in mm)
COL_DESCRIPTION_X = 30.0
COL_AMOUNT_CENTER_X = PAGE_WIDTH / 2
COL_DATE_X = PAGE_WIDTH - 50
COL_DESCRIPTION_W = COL_AMOUNT_CENTER_X - COL_DESCRIPTION_X - 18
COL_AMOUNT_W = 36.0
CATEGORY_HEADER_TEXT_W = PAGE_WIDTH - 2 * SIDE_MARGIN - 10

# Regex to strip emoji characters (Helvetica lacks emoji glyphs)
_EMOJI_RE = _re.compile(
    "["
    "\U0001F300-\U0001F9FF"  # Misc Symbols, Emoticons, Supplemental Symbols
    "\U00002702-\U000027B0"  # Dingbats
    "\U0000FE00-\U0000FE0F"  # Variation Selectors
    "\U0000200D"             # Zero Width Joiner
    "]+",
)


@dataclass
class RenderedDocument:
    filename: str
    content: bytes
    page_count: int
    placements: List[Placement] = field(default_factory=list)


def _sanitize_for_pdf(text: str) -> str:
    """Replace Unicode characters unsupported by Helvetica (Latin-1) with ASCII equivalents."""
    text = _EMOJI_RE.sub("", text)
    replacements = {
        "\u2013": "-",    # en-dash
        "\u2014": "--",   # em-dash
        "\u2018": "'",    # left single quote
        "\u2019": "'",    # right single quote
        "\u201c": '"',    # left double quote
        "\u201d": '"',    # right double quote
        "\u2026": "...",  # ellipsis
        "\u2022": "*",    # bullet
        "\u00a0": " ",    # non-breaking space
        "\u2212": "-",    # minus sign
        "\u20ac": "EUR ",  # euro sign
        "\u20b9": "Rs. ",  # rupee sign
    }
    for char, replacement in replacements.items():
        text = text.replace(char, replacement)
    # Fallback: replace any remaining non-Latin-1 chars
    return text.encode("latin-1", errors="replace").decode("latin-1")


def _truncate_to_width(pdf, text: str, max_width: float) -> str:
    """Truncate text with '...' suffix if it exceeds the given width (mm)."""
    if pdf.get_string_width(text) <= max_width:
        return text
    ellipsis = "..."
    ew = pdf.get_string_width(ellipsis)
    for i in range(len(text), 0, -1):
        if pdf.get_string_width(text[:i]) + ew <= max_width:
            return text[:i] + ellipsis
    return ellipsis


def _format_row_date(record: ExpenseRecord) -> str:
    return record.date.strftime("%d-%m-%Y")


def _format_row_amount(record: ExpenseRecord, fmt: Callable[[float], str]) -> str:
    try:
        return fmt(parse_amount(record.amount, record.id))
    except MalformedAmountError:
        return "-"


def _draw_section_title(pdf, cursor: LayoutCursor, title: str):
    """Bold brand-colored heading with a rule underneath."""
    cursor.ensure_room(SECTION_TITLE_HEIGHT)
    y = cursor.place(SECTION_TITLE_HEIGHT, "section_title", title)
    pdf.set_font("Helvetica", "B", 14)
    pdf.set_text_color(*BRAND_RGB)
    pdf.text(SIDE_MARGIN, y, title)
    pdf.set_draw_color(*BRAND_RGB)
    pdf.set_line_width(0.7)
    pdf.line(SIDE_MARGIN, y + 2, PAGE_WIDTH - SIDE_MARGIN, y + 2)


def _build_pdf_logo(pdf, logo_path: Optional[Path]) -> Optional[float]:
    """
    Draw the logo centered at the top of the first page.

    Returns the logo height in mm, or None when there is no usable logo.
    A missing or unreadable logo only costs the image.
    """
    if not logo_path:
        return None
    try:
        with Image.open(logo_path) as img:
            src_w, src_h = img.size
        logo_w, logo_h = scale_logo(src_w, src_h)
        pdf.image(str(logo_path), x=PAGE_WIDTH / 2 - logo_w / 2, y=LOGO_TOP, w=logo_w, h=logo_h)
        return logo_h
    except (OSError, ValueError) as e:
        logger.warning(f"Could not load report logo {logo_path}: {e}")
        return None


def _build_pdf_header(
    pdf, cursor: LayoutCursor, title: str, period_text: str, logo_path: Optional[Path],
):
    """Render logo, title and period line."""
    logo_h = _build_pdf_logo(pdf, logo_path)
    if logo_h is not None:
        cursor.placements.append(Placement(cursor.page, LOGO_TOP, logo_h, "logo"))
        cursor.y = LOGO_TOP + logo_h + LOGO_GAP

    y = cursor.place(TITLE_HEIGHT, "title", title)
    pdf.set_font("Helvetica", "B", 20)
    pdf.set_text_color(*BRAND_RGB)
    title = _sanitize_for_pdf(title)
    pdf.text((PAGE_WIDTH - pdf.get_string_width(title)) / 2, y, title)

    y = cursor.place(PERIOD_LINE_HEIGHT, "period", period_text)
    pdf.set_font("Helvetica", "", 12)
    pdf.set_text_color(*MUTED_RGB)
    pdf.text(SIDE_MARGIN, y, period_text)


def _build_pdf_summary(pdf, cursor: LayoutCursor, summary: ReportSummary, fmt: Callable[[float], str]):
    """Render the Summary heading and the filled totals box."""
    _draw_section_title(pdf, cursor, "Summary")

    cursor.ensure_room(SUMMARY_BOX_HEIGHT)
    y = cursor.place(SUMMARY_BOX_HEIGHT, "summary", advance=SUMMARY_BLOCK_HEIGHT)
    pdf.set_fill_color(*SUMMARY_FILL_RGB)
    pdf.rect(SIDE_MARGIN, y, PAGE_WIDTH - 2 * SIDE_MARGIN, SUMMARY_BOX_HEIGHT, "F")

    left_x = SIDE_MARGIN + 5
    right_x = PAGE_WIDTH / 2 + 10
    pdf.set_font("Helvetica", "B", 11)
    pdf.set_text_color(*BRAND_RGB)
    pdf.text(left_x, y + 8, _sanitize_for_pdf(f"Total Spent: {fmt(summary.total_spent)}"))
    pdf.set_text_color(*MUTED_RGB)
    pdf.text(left_x, y + 16, f"Total Transactions: {summary.transaction_count}")
    pdf.set_text_color(*BRAND_RGB)
    pdf.text(
        right_x, y + 8,
        _sanitize_for_pdf(f"Average Transaction: {fmt(summary.average_transaction)}"),
    )


def _draw_table_header(pdf, cursor: LayoutCursor):
    y = cursor.place(TABLE_HEADER_HEIGHT, "table_header")
    pdf.set_font("Helvetica", "B", 10)
    pdf.set_text_color(*TABLE_HEADER_RGB)
    pdf.text(COL_DESCRIPTION_X, y, "Description")
    pdf.text(COL_AMOUNT_CENTER_X - pdf.get_string_width("Amount") / 2, y, "Amount")
    pdf.text(COL_DATE_X, y, "Date")
    pdf.set_draw_color(*BRAND_RGB)
    pdf.set_line_width(0.3)
    pdf.line(SIDE_MARGIN + 5, y + 6, PAGE_WIDTH - SIDE_MARGIN - 5, y + 6)


def _draw_row(pdf, cursor: LayoutCursor, row_index: int, record: ExpenseRecord, fmt):
    y = cursor.place(ROW_HEIGHT, "row", str(record.id))
    if row_index % 2 == 1:
        pdf.set_fill_color(*BAND_FILL_RGB)
        pdf.rect(SIDE_MARGIN + 5, y, PAGE_WIDTH - 2 * SIDE_MARGIN - 10, ROW_HEIGHT - 1, "F")

    pdf.set_font("Helvetica", "", 9)
    pdf.set_text_color(*BODY_RGB)
    baseline = y + 5
    description = _sanitize_for_pdf(record.description or "-")
    pdf.text(COL_DESCRIPTION_X, baseline, _truncate_to_width(pdf, description, COL_DESCRIPTION_W))
    amount = _truncate_to_width(pdf, _sanitize_for_pdf(_format_row_amount(record, fmt)), COL_AMOUNT_W)
    pdf.text(COL_AMOUNT_CENTER_X - pdf.get_string_width(amount) / 2, baseline, amount)
    pdf.text(COL_DATE_X, baseline, _format_row_date(record))


def _category_header_text(pdf, name: str, amount_text: str) -> str:
    """Category bar label, name shortened so the amount always fits."""
    suffix = _sanitize_for_pdf(f" ({amount_text})")
    name_width = CATEGORY_HEADER_TEXT_W - pdf.get_string_width(suffix)
    return _truncate_to_width(pdf, name, max(name_width, 0)) + suffix


def _build_pdf_category_sections(
    pdf,
    cursor: LayoutCursor,
    summary: ReportSummary,
    records: Sequence[ExpenseRecord],
    fmt: Callable[[float], str],
    categories: Optional[Dict[str, Dict[str, str]]] = None,
):
    """
    Render one section per category, largest total first.

    Each section is a colored header bar followed by a Description/Amount/Date
    table of that category's expenses in ledger order. Rows are checked one
    at a time against the page bottom; a section only starts where its
    header, table header and first row all fit.
    """
    _draw_section_title(pdf, cursor, "Category Breakdown")

    for category, amount in sorted_category_totals(summary):
        rows = [r for r in records if r.category == category]
        name = _sanitize_for_pdf(category_display_name(category, categories))

        first_row = ROW_HEIGHT if rows else 0
        cursor.ensure_room(SECTION_HEADER_HEIGHT + TABLE_HEADER_HEIGHT + first_row)
        y = cursor.place(CATEGORY_BAR_HEIGHT, "section", category, advance=SECTION_HEADER_HEIGHT)
        pdf.set_fill_color(*CATEGORY_FILL_RGB)
        pdf.rect(SIDE_MARGIN, y, PAGE_WIDTH - 2 * SIDE_MARGIN, CATEGORY_BAR_HEIGHT, "F")
        pdf.set_font("Helvetica", "B", 12)
        pdf.set_text_color(*BRAND_RGB)
        pdf.text(SIDE_MARGIN + 5, y + 8, _category_header_text(pdf, name, fmt(amount)))

        _draw_table_header(pdf, cursor)

        for idx, record in enumerate(rows):
            if cursor.ensure_room(ROW_HEIGHT):
                logger.debug(f"Page break inside '{category}' at row {idx}")
            _draw_row(pdf, cursor, idx, record, fmt)

        cursor.y += SECTION_GAP


def report_pdf_filename(prefix: str, selector: PeriodSelector, interval: ResolvedInterval) -> str:
    """e.g. finsight-report-month.pdf, finsight-report-2024-01-01_to_2024-01-31.pdf"""
    return f"{prefix}-report-{period_filename_token(selector, interval)}.pdf"


def generate_report_pdf(
    summary: ReportSummary,
    records: Sequence[ExpenseRecord],
    interval: ResolvedInterval,
    selector: PeriodSelector,
    currency: str = "USD",
    logo_path: Union[str, Path, None] = None,
    title: Optional[str] = None,
    formatter: CurrencyFormatter = format_currency,
    categories: Optional[Dict[str, Dict[str, str]]] = None,
    prefix: Optional[str] = None,
) -> RenderedDocument:
    """
    Generate the expense report PDF in memory.

    The whole document is laid out and serialized before anything is
    returned, so callers never see a partial file.

    Raises ExportFailedError on any rendering failure (a broken logo is
    not a failure; the report is produced without it).
    """
    def fmt(value: float) -> str:
        return formatter(value, currency)

    try:
        pdf = FPDF(orientation="P", unit="mm", format="A4")
        pdf.set_auto_page_break(auto=False)
        pdf.add_page()
        cursor = LayoutCursor(top=TOP_MARGIN, y=TOP_MARGIN, on_new_page=pdf.add_page)

        _build_pdf_header(
            pdf, cursor,
            title or settings.report_title,
            _sanitize_for_pdf(describe_period(selector, interval)),
            Path(logo_path) if logo_path else None,
        )
        _build_pdf_summary(pdf, cursor, summary, fmt)
        _build_pdf_category_sections(pdf, cursor, summary, records, fmt, categories)

        buffer = BytesIO()
        pdf.output(buffer)
    except Exception as e:
        logger.error(f"PDF generation failed: {e}", exc_info=True)
        raise ExportFailedError(f"PDF generation failed: {e}", cause=e) from e

    filename = report_pdf_filename(prefix or settings.export_prefix, selector, interval)
    logger.info(f"Generated {filename}: {cursor.page_count} page(s), {len(records)} expenses")
    return RenderedDocument(
        filename=filename,
        content=buffer.getvalue(),
        page_count=cursor.page_count,
        placements=cursor.placements,
    )
