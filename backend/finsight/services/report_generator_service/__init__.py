"""
Report Generator Service

Split into focused modules:
- csv_exporter: flat CSV export of expense records
- layout: page geometry and the pagination cursor
- pdf_generator: PDF report generation with fpdf2
- delivery: native documents write with download fallback
"""

from finsight.services.report_generator_service.csv_exporter import (  # noqa: F401
    CSV_COLUMNS,
    csv_filename,
    expenses_to_csv,
)
from finsight.services.report_generator_service.delivery import (  # noqa: F401
    DeliveryResult,
    deliver_export,
)
from finsight.services.report_generator_service.pdf_generator import (  # noqa: F401
    RenderedDocument,
    generate_report_pdf,
    report_pdf_filename,
)

# Re-export internals used by tests.
from finsight.services.report_generator_service.pdf_generator import (  # noqa: F401
    _sanitize_for_pdf,
    _truncate_to_width,
)
