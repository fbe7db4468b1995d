"""Sentence-aware segmenter that splits chapters into bounded excerpts."""

import logging
import re

from epubspoon.config import SegmentingConfig

logger = logging.getLogger(__name__)

# A break follows ., ! or ? plus whitespace, but only before an uppercase
# letter, so "Mr. smith" or "U.S. law" stay joined. "Mr. Smith" still splits.
SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+(?=[A-Z])")


def count_words(text: str) -> int:
    """Count whitespace-delimited tokens.

    Args:
        text: The text to count.

    Returns:
        Number of words.
    """
    return len(text.split())


def split_sentences(text: str) -> list[str]:
    """Split text into sentence candidates on the boundary rule.

    Args:
        text: Chapter text.

    Returns:
        Non-empty sentence strings in original order.
    """
    return [s for s in SENTENCE_BOUNDARY.split(text.strip()) if s.strip()]


class Segmenter:
    """Splits chapter texts into excerpts of roughly ``target_words`` words.

    Sentences are accumulated into a batch; the batch is closed as soon as
    the next sentence would push it past the target. Segments never span
    chapters, and a single sentence longer than the target becomes its own
    segment rather than being cut.

    Args:
        config: SegmentingConfig with target_words.
    """

    def __init__(self, config: SegmentingConfig | None = None) -> None:
        self._config = config or SegmentingConfig()

    @property
    def target_words(self) -> int:
        return self._config.target_words

    def segment(self, chapter_texts: list[str]) -> list[str]:
        """Segment every chapter and flatten the result in chapter order.

        Args:
            chapter_texts: Plain text per chapter. Blank chapters are skipped.

        Returns:
            All segments, chapter by chapter.
        """
        segments: list[str] = []
        for chapter_text in chapter_texts:
            segments.extend(self.segment_chapter(chapter_text))

        logger.debug(
            "Segmented %d chapters into %d segments (target %d words)",
            len(chapter_texts),
            len(segments),
            self.target_words,
        )
        return segments

    def segment_chapter(self, text: str) -> list[str]:
        """Segment a single chapter.

        Args:
            text: Chapter text.

        Returns:
            Segments for this chapter; empty for blank input.
        """
        if not text.strip():
            return []

        result: list[str] = []
        batch: list[str] = []
        running = 0

        for sentence in split_sentences(text):
            words = count_words(sentence)

            if batch and running + words > self.target_words:
                result.append(" ".join(batch).strip())
                batch = []
                running = 0

            batch.append(sentence)
            running += words

        remainder = " ".join(batch).strip()
        if remainder:
            result.append(remainder)

        return result
