class ReportError(Exception):
    """Base exception for report generation and persistence errors."""

    status_code = 500
    message = "Failed to generate report"


class EmptySubmissionError(ReportError):
    """Raised when a submission carries no usable test values."""

    status_code = 400
    message = "No test values were provided"


class UnknownTestTypeError(ReportError):
    """Raised for unrecognized test types when strict test types are enabled."""

    status_code = 400
    message = "Unknown test type"


class PatientNotFoundError(ReportError):
    """Raised when an existing patient id does not resolve to a record."""

    status_code = 404
    message = "Patient not found"


class StoreUnavailableError(ReportError):
    """Raised when the record store fails to read or write."""

    status_code = 503
    message = "Failed to save patient data"
