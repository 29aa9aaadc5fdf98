"""
Exception hierarchy for the scan summarizer.

Only EmptyInputError is meant to reach callers. BackendUnavailableError and
TitleExtractionError are raised and recovered inside the package.
"""


class ScanSummarizerError(Exception):
    """Base class for all scan summarizer errors."""


class EmptyInputError(ScanSummarizerError, ValueError):
    """Raised when the text to summarize contains no sentences."""


class BackendUnavailableError(ScanSummarizerError, RuntimeError):
    """Raised when the generative backend cannot produce a summary."""


class TitleExtractionError(ScanSummarizerError):
    """Raised when a title cannot be derived from the text."""
