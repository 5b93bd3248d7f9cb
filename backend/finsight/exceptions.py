"""
Domain exceptions for the reporting pipeline.

Services raise these instead of transport-specific errors so the
orchestrator (or any host application) can decide how to present them.
Each carries an HTTP-equivalent status code for hosts that serve reports
over HTTP.
"""


class AppError(Exception):
    """Base application error with an HTTP-equivalent status code."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ValidationError(AppError):
    """Input validation failure (400)."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class IncompleteSelectorError(AppError):
    """Custom period selected but one of its bounds is still missing.

    This is an expected state, not a failure: there is simply nothing to
    aggregate yet.
    """

    def __init__(self, message: str = "Custom period requires both a start and an end date"):
        super().__init__(message, status_code=400)


class MalformedAmountError(AppError):
    """An expense amount could not be parsed as a number (422)."""

    def __init__(self, value, record_id=None):
        self.value = value
        self.record_id = record_id
        super().__init__(
            f"Malformed amount {value!r} on expense {record_id}", status_code=422,
        )


class EmptyDatasetError(AppError):
    """Export requested for a period with no expenses (404)."""

    def __init__(self, message: str = "No expenses to export for the selected period"):
        super().__init__(message, status_code=404)


class FetchFailedError(AppError):
    """The remote ledger could not be queried (502)."""

    def __init__(self, message: str = "Failed to load report data", cause: Exception = None):
        self.cause = cause
        super().__init__(message, status_code=502)


class ExportFailedError(AppError):
    """Rendering or delivering an export failed (500)."""

    def __init__(self, message: str = "Export failed", cause: Exception = None):
        self.cause = cause
        super().__init__(message, status_code=500)
