"""Coverage report munging and HTML generation."""


class ReportError(Exception):
    """Base exception for coverage report handling errors."""
