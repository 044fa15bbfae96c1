"""
Error types raised by the ingestion pipeline.

Every error is terminal for the current ingestion cycle. The `kind`
attribute is a stable string a renderer can switch on to pick a message.
"""


class LineaDashboardError(Exception):
    """Base error for the line dashboard pipeline."""

    kind = "error"


class RetrievalFailure(LineaDashboardError):
    """Raised when the sheet export could not be retrieved as tabular text."""

    kind = "retrieval_failure"


class RetrievalCancelled(RetrievalFailure):
    """Raised when an in-flight retrieval was superseded by a newer cycle."""

    kind = "retrieval_cancelled"


class MalformedInput(LineaDashboardError):
    """Raised when the raw text is empty or cannot be parsed."""

    kind = "malformed_input"


class InvalidHeaderRow(LineaDashboardError):
    """Raised when the configured header row does not exist in the matrix."""

    kind = "invalid_header_row"


class NoDateColumns(LineaDashboardError):
    """Raised when the header row yields no day columns."""

    kind = "no_date_columns"


class InvalidDate(LineaDashboardError, ValueError):
    """Raised when a header label matches a date pattern but is not a real day."""

    kind = "invalid_date"


class ConfigError(LineaDashboardError, ValueError):
    """Raised when pipeline configuration fails validation."""

    kind = "config_error"
