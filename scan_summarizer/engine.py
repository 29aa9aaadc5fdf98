"""
Extractive summary engine.

Composes the helpers in extractive.py into the public summarize/title API.
Summaries fail loudly on empty input; titles never fail.
"""

import logging
from dataclasses import dataclass

from .errors import EmptyInputError, TitleExtractionError
from .extractive import (
    FALLBACK_TITLE,
    LengthTier,
    Sentence,
    extract_title,
    join_summary,
    score_sentences,
    segment,
    select_sentences,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SummaryResult:
    """Summary and title produced for one document."""
    summary: str
    title: str


class SummaryEngine:
    """
    Rule-based summarizer used directly or as the generative fallback.

    The engine holds no state between calls, so one instance can be shared
    by every caller in the process.
    """

    def summarize(self, text: str, tier: LengthTier | str = LengthTier.MEDIUM) -> str:
        """
        Build an extractive summary of the text.

        Args:
            text: Recognized text to summarize
            tier: Length tier (or its name)

        Returns:
            Selected sentences joined with '. ' and a trailing period

        Raises:
            EmptyInputError: If the text contains no sentences
        """
        sentences: list[Sentence] = segment(text) if text.strip() else []
        if not sentences:
            raise EmptyInputError("No text found to summarize")

        selected: list[Sentence] = select_sentences(
            score_sentences(sentences),
            LengthTier.from_value(tier)
        )
        logger.debug(
            "Selected %d of %d sentences (indices %s)",
            len(selected), len(sentences), [s.index for s in selected]
        )
        return join_summary(selected)

    def title(self, text: str) -> str:
        """
        Derive a title for the text.

        Never raises: failures are logged and the fallback title returned.
        """
        try:
            return extract_title(text)
        except TitleExtractionError as e:
            logger.error("Error generating title: %s", e)
            return FALLBACK_TITLE

    def analyze(self, text: str, tier: LengthTier | str = LengthTier.MEDIUM) -> SummaryResult:
        """Summarize the text and derive its title."""
        return SummaryResult(summary=self.summarize(text, tier), title=self.title(text))
