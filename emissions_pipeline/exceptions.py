"""
Error types raised by the ingestion pipeline and the query engine.
"""


class EmissionsPipelineError(Exception):
    """Base class for all pipeline errors."""


class UnknownYear(EmissionsPipelineError, KeyError):
    """Year is not part of the configured year set."""

    def __init__(self, year):
        self.year = year
        super().__init__(f"Unknown year: {year!r}")

    def __str__(self):
        return self.args[0]


class StoreConnectionError(EmissionsPipelineError):
    """Store is unreachable or its driver is unavailable."""


class SchemaError(EmissionsPipelineError):
    """Partition creation failed (for example because it already exists)."""


class QueryError(EmissionsPipelineError):
    """A store operation failed."""


class MalformedRow(EmissionsPipelineError, ValueError):
    """A data line failed field-count or numeric validation."""

    def __init__(self, line_number: int, reason: str):
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"Line {line_number}: {reason}")


class EmptyBaseline(EmissionsPipelineError, ZeroDivisionError):
    """Percentage change requested against a baseline count of zero."""
