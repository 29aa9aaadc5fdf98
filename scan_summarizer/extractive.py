"""
Rule-based extractive summarization.

Building blocks used by SummaryEngine:
- segment: split recognized text into sentences
- score_sentence: rate a sentence by position, keywords and length
- select_sentences: pick the best sentences for a length tier
- join_summary: render selected sentences as summary text
- extract_title: derive a short title from the first sentence
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from .errors import TitleExtractionError

logger = logging.getLogger(__name__)

_SENTENCE_BOUNDARY = re.compile(r"[.!?]+")
_TITLE_NOISE = re.compile(r"[^\w\s-]")

IMPORTANT_KEYWORDS: tuple[str, ...] = (
    "important",
    "key",
    "main",
    "primary",
    "essential",
    "critical",
    "summary",
    "conclusion",
    "result",
    "finding",
    "recommendation",
)
KEYWORD_BOOST: int = 5
LENGTH_BOOST: int = 2
LONG_SENTENCE_CHARS: int = 100

TITLE_MAX_CHARS: int = 50
TITLE_ELLIPSIS: str = "..."
FALLBACK_TITLE: str = "Document Summary"


class LengthTier(str, Enum):
    """User-selectable summary length."""
    SHORT = "short"
    MEDIUM = "medium"
    LARGE = "large"

    @property
    def target(self) -> int:
        """Number of sentences this tier aims for."""
        return _TIER_TARGETS[self]

    @classmethod
    def from_value(cls, value: "LengthTier | str") -> "LengthTier":
        """
        Resolve a tier from a tier or its name.

        Unknown names resolve to MEDIUM.

        Args:
            value: LengthTier instance or one of 'short', 'medium', 'large'

        Returns:
            Matching LengthTier
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.warning("Unknown length tier %r, using 'medium'", value)
            return cls.MEDIUM


_TIER_TARGETS: dict[LengthTier, int] = {
    LengthTier.SHORT: 2,
    LengthTier.MEDIUM: 4,
    LengthTier.LARGE: 6,
}


@dataclass(frozen=True)
class Sentence:
    """A sentence and its position in the segmented text."""
    text: str
    index: int


@dataclass(frozen=True)
class ScoredSentence:
    """A sentence paired with its importance score."""
    sentence: Sentence
    score: int


def segment(text: str) -> list[Sentence]:
    """
    Split text into sentences on runs of '.', '!' and '?'.

    Fragments that are empty after trimming are dropped, and indices are
    assigned over the remaining fragments.

    Args:
        text: Raw recognized text

    Returns:
        Sentences in reading order (empty for blank input)
    """
    fragments: list[str] = [
        fragment.strip() for fragment in _SENTENCE_BOUNDARY.split(text)
    ]
    return [
        Sentence(text=fragment, index=i)
        for i, fragment in enumerate(f for f in fragments if f)
    ]


def score_sentence(sentence: Sentence, total_sentences: int) -> int:
    """
    Score a sentence for inclusion in a summary.

    Earlier sentences score higher. Each distinct important keyword found in
    the sentence (case-insensitive) adds KEYWORD_BOOST, and sentences longer
    than LONG_SENTENCE_CHARS add LENGTH_BOOST.

    Args:
        sentence: Sentence to score
        total_sentences: Number of sentences in the document

    Returns:
        Importance score
    """
    score: int = total_sentences - sentence.index

    lowered: str = sentence.text.lower()
    score += KEYWORD_BOOST * sum(
        1 for keyword in IMPORTANT_KEYWORDS if keyword in lowered
    )

    if len(sentence.text.strip()) > LONG_SENTENCE_CHARS:
        score += LENGTH_BOOST

    return score


def score_sentences(sentences: list[Sentence]) -> list[ScoredSentence]:
    """Score every sentence against the document length."""
    total: int = len(sentences)
    return [
        ScoredSentence(sentence=sentence, score=score_sentence(sentence, total))
        for sentence in sentences
    ]


def select_sentences(
    scored: list[ScoredSentence],
    tier: LengthTier
) -> list[Sentence]:
    """
    Pick the top-scoring sentences for a tier, in reading order.

    Ties go to the earlier sentence.

    Args:
        scored: Scored sentences of one document
        tier: Length tier controlling how many sentences are kept

    Returns:
        min(tier.target, len(scored)) sentences sorted by original index
    """
    count: int = min(tier.target, len(scored))
    ranked = sorted(scored, key=lambda item: (-item.score, item.sentence.index))
    chosen: list[Sentence] = [item.sentence for item in ranked[:count]]
    return sorted(chosen, key=lambda sentence: sentence.index)


def join_summary(sentences: list[Sentence]) -> str:
    """Join sentences with '. ' and close with a period."""
    return ". ".join(sentence.text for sentence in sentences) + "."


def extract_title(text: str) -> str:
    """
    Derive a short title from the first sentence of the text.

    Characters other than word characters, whitespace and hyphens are
    removed. Titles are cut to TITLE_MAX_CHARS, and a cut title gets
    TITLE_ELLIPSIS appended after the cut.

    Args:
        text: Raw recognized text

    Returns:
        Title, or FALLBACK_TITLE when nothing usable remains

    Raises:
        TitleExtractionError: If the text cannot be processed
    """
    try:
        sentences: list[Sentence] = segment(text)
        first: str = sentences[0].text if sentences else ""
        cleaned: str = _TITLE_NOISE.sub("", first).strip()
    except Exception as e:
        raise TitleExtractionError(f"Could not derive title: {e}") from e

    title: str = cleaned[:TITLE_MAX_CHARS]
    if len(cleaned) >= TITLE_MAX_CHARS:
        title += TITLE_ELLIPSIS

    return title or FALLBACK_TITLE
