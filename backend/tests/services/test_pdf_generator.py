"""
Tests for the PDF report generator.

Layout assertions work on the recorded placements rather than the PDF bytes.
"""

from datetime import date
from unittest.mock import MagicMock, patch

import pytest
from fpdf import FPDF
from PIL import Image

from finsight.exceptions import ExportFailedError
from finsight.models import PeriodSelector, PeriodTag, ResolvedInterval
from finsight.services.report_aggregator import aggregate_expenses
from finsight.services.report_generator_service import (
    _sanitize_for_pdf,
    _truncate_to_width,
    generate_report_pdf,
    report_pdf_filename,
)
from finsight.services.report_generator_service.layout import (
    LOGO_GAP,
    LOGO_TOP,
    PAGE_BOTTOM_MARGIN,
    TOP_MARGIN,
    LayoutCursor,
)
from finsight.services.report_generator_service.pdf_generator import (
    CATEGORY_HEADER_TEXT_W,
    _category_header_text,
    _draw_row,
)

MARCH = ResolvedInterval(start_date=date(2024, 3, 1), end_date=date(2024, 3, 31))
MONTH = PeriodSelector(tag=PeriodTag.MONTH)


def _render(records, **kwargs):
    summary = aggregate_expenses(records)
    kwargs.setdefault("prefix", "finsight")
    return generate_report_pdf(summary, records, MARCH, MONTH, **kwargs)


def _kinds(doc, kind):
    return [p for p in doc.placements if p.kind == kind]


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


class TestSanitizeForPdf:

    def test_smart_punctuation(self):
        assert _sanitize_for_pdf("“Hi” – it’s…") == '"Hi" - it\'s...'

    def test_currency_signs(self):
        assert _sanitize_for_pdf("€5") == "EUR 5"
        assert _sanitize_for_pdf("₹100") == "Rs. 100"

    def test_emoji_removed(self):
        assert _sanitize_for_pdf("Pizza \U0001F355") == "Pizza "

    def test_latin1_kept(self):
        assert _sanitize_for_pdf("Café") == "Café"

    def test_other_unicode_replaced(self):
        assert _sanitize_for_pdf("中") == "?"


class TestTruncateToWidth:

    def _pdf(self):
        pdf = MagicMock()
        pdf.get_string_width.side_effect = lambda s: float(len(s))
        return pdf

    def test_short_text_untouched(self):
        assert _truncate_to_width(self._pdf(), "short", 10) == "short"

    def test_long_text_gets_ellipsis(self):
        assert _truncate_to_width(self._pdf(), "abcdefghijkl", 8) == "abcde..."


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class TestGenerateReportPdf:

    def test_produces_pdf_bytes(self, sample_expenses):
        doc = _render(sample_expenses)
        assert doc.content.startswith(b"%PDF")
        assert doc.page_count == 1
        assert doc.filename == "finsight-report-month.pdf"

    def test_header_then_summary_then_sections(self, sample_expenses):
        doc = _render(sample_expenses)
        kinds = [p.kind for p in doc.placements]
        assert kinds[:5] == ["title", "period", "section_title", "summary", "section_title"]
        assert doc.placements[1].label == "Period: This Month (01/03/2024 to 31/03/2024)"

    def test_sections_in_descending_total_order(self, sample_expenses):
        doc = _render(sample_expenses)
        assert [p.label for p in _kinds(doc, "section")] == ["bills", "transportation", "food"]

    def test_rows_follow_ledger_order_within_section(self, make_expense):
        records = [
            make_expense(1, "food", date(2024, 3, 3), id="a"),
            make_expense(9, "food", date(2024, 3, 1), id="b"),
            make_expense(5, "food", date(2024, 3, 2), id="c"),
        ]
        doc = _render(records)
        assert [p.label for p in _kinds(doc, "row")] == ["a", "b", "c"]

    def test_every_record_gets_one_row(self, sample_expenses):
        doc = _render(sample_expenses)
        assert len(_kinds(doc, "row")) == len(sample_expenses)

    def test_empty_period_renders_summary_only(self):
        doc = _render([])
        assert doc.content.startswith(b"%PDF")
        assert _kinds(doc, "section") == []
        assert len(_kinds(doc, "summary")) == 1

    def test_unknown_currency_code(self, sample_expenses):
        doc = _render(sample_expenses, currency="CHF")
        assert doc.content.startswith(b"%PDF")

    def test_custom_formatter_is_used(self, sample_expenses):
        calls = []

        def fmt(amount, currency):
            calls.append(currency)
            return f"{currency} {amount:.2f}"

        _render(sample_expenses, currency="EUR", formatter=fmt)
        assert calls and set(calls) == {"EUR"}

    def test_malformed_row_amount_does_not_fail(self, make_expense):
        doc = _render([make_expense(5, "food"), make_expense("n/a", "food")])
        assert doc.content.startswith(b"%PDF")


class TestPagination:

    def test_long_category_spans_pages(self, make_expense):
        records = [make_expense(float(i % 50 + 1), "food", date(2024, 3, 1 + i % 28)) for i in range(200)]
        doc = _render(records)
        assert doc.page_count > 1
        assert len(_kinds(doc, "row")) == 200

    def test_rows_stay_within_margins(self, make_expense):
        categories = ["food", "bills", "travel", "shopping", "other", "education"]
        records = [make_expense(float(i + 1), categories[i % len(categories)]) for i in range(240)]
        doc = _render(records)
        for p in _kinds(doc, "row"):
            assert p.y >= TOP_MARGIN
            assert p.bottom <= PAGE_BOTTOM_MARGIN

    def test_all_blocks_within_bottom_margin(self, make_expense):
        categories = ["food", "bills", "travel", "shopping"]
        records = [make_expense(float(i + 1), categories[i % 4]) for i in range(150)]
        doc = _render(records)
        assert all(p.bottom <= PAGE_BOTTOM_MARGIN for p in doc.placements)

    def test_section_header_never_orphaned(self, make_expense):
        categories = ["food", "bills", "travel", "shopping", "other", "education", "healthcare"]
        records = [
            make_expense(float(i % 13 + 1), categories[i % len(categories)])
            for i in range(7 * 23)
        ]
        doc = _render(records)
        placements = doc.placements
        for i, p in enumerate(placements):
            if p.kind != "section":
                continue
            table_header, first_row = placements[i + 1], placements[i + 2]
            assert table_header.kind == "table_header"
            assert first_row.kind == "row"
            assert p.page == table_header.page == first_row.page

    def test_page_numbers_are_contiguous(self, make_expense):
        records = [make_expense(1.0, "food") for _ in range(120)]
        doc = _render(records)
        pages = sorted({p.page for p in doc.placements})
        assert pages == list(range(1, doc.page_count + 1))


class TestBanding:

    def _pdf(self):
        pdf = MagicMock()
        pdf.get_string_width.return_value = 10.0
        return pdf

    def test_even_rows_unfilled(self, make_expense):
        pdf = self._pdf()
        _draw_row(pdf, LayoutCursor(), 0, make_expense(), lambda v: f"{v:.2f}")
        pdf.rect.assert_not_called()

    def test_odd_rows_filled(self, make_expense):
        pdf = self._pdf()
        _draw_row(pdf, LayoutCursor(), 1, make_expense(), lambda v: f"{v:.2f}")
        pdf.rect.assert_called_once()
        assert pdf.rect.call_args.args[-1] == "F"


class TestCategoryHeader:

    def _pdf(self):
        pdf = FPDF(orientation="P", unit="mm", format="A4")
        pdf.add_page()
        pdf.set_font("Helvetica", "B", 12)
        return pdf

    def test_short_name_untouched(self):
        assert _category_header_text(self._pdf(), "Food & Dining", "$12.00") == "Food & Dining ($12.00)"

    def test_long_name_shortened_amount_kept(self):
        pdf = self._pdf()
        text = _category_header_text(pdf, "Quarterly " * 30, "$1,234.50")
        assert text.endswith("... ($1,234.50)")
        assert pdf.get_string_width(text) <= CATEGORY_HEADER_TEXT_W + 1e-6

    def test_long_custom_category_renders(self, make_expense):
        records = [make_expense(5, "x" * 300), make_expense(7, "food")]
        summary = aggregate_expenses(records)
        doc = generate_report_pdf(
            summary, records, MARCH, MONTH, categories={"x" * 300: {"name": "Very long " * 40}},
            prefix="finsight",
        )
        assert doc.content.startswith(b"%PDF")


class TestLogo:

    def test_logo_scaled_and_pushes_title_down(self, tmp_path, sample_expenses):
        logo = tmp_path / "logo.png"
        Image.new("RGB", (200, 100), "navy").save(logo)
        doc = _render(sample_expenses, logo_path=logo)
        placed = _kinds(doc, "logo")
        assert len(placed) == 1
        assert placed[0].height == pytest.approx(20)
        assert _kinds(doc, "title")[0].y == pytest.approx(LOGO_TOP + 20 + LOGO_GAP)

    def test_unreadable_logo_is_skipped(self, tmp_path, sample_expenses):
        bad = tmp_path / "logo.png"
        bad.write_text("not an image")
        doc = _render(sample_expenses, logo_path=bad)
        assert doc.content.startswith(b"%PDF")
        assert _kinds(doc, "logo") == []
        assert _kinds(doc, "title")[0].y == TOP_MARGIN

    def test_missing_logo_is_skipped(self, tmp_path, sample_expenses):
        doc = _render(sample_expenses, logo_path=tmp_path / "nope.png")
        assert _kinds(doc, "logo") == []


class TestFailures:

    def test_render_failure_raises_export_failed(self, sample_expenses):
        with patch.object(FPDF, "output", side_effect=RuntimeError("disk full")):
            with pytest.raises(ExportFailedError) as exc:
                _render(sample_expenses)
        assert isinstance(exc.value.cause, RuntimeError)
        assert exc.value.status_code == 500


class TestReportPdfFilename:

    def test_named_period(self):
        assert report_pdf_filename("finsight", MONTH, MARCH) == "finsight-report-month.pdf"

    def test_all_time(self):
        sel = PeriodSelector(tag=PeriodTag.ALL)
        assert report_pdf_filename("finsight", sel, MARCH) == "finsight-report-all-time.pdf"

    def test_custom_range(self):
        sel = PeriodSelector(tag=PeriodTag.CUSTOM, start_date=date(2024, 3, 1), end_date=date(2024, 3, 31))
        assert report_pdf_filename("acme", sel, MARCH) == "acme-report-2024-03-01_to_2024-03-31.pdf"
