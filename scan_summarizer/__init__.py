"""
Scan Summarizer package.

This package turns recognized text from scanned documents into short titled
notes: an extractive summarizer that always works offline, optionally backed
by a generative model, plus OCR and note-storage helpers.
"""

from .engine import SummaryEngine, SummaryResult
from .errors import EmptyInputError
from .extractive import LengthTier
from .gate import BackendGate, BackendState

__version__ = "0.1.0"

__all__ = [
    "BackendGate",
    "BackendState",
    "EmptyInputError",
    "LengthTier",
    "SummaryEngine",
    "SummaryResult",
]
