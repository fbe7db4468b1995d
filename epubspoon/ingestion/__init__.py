"""Book ingestion: hashing, extraction and segmentation."""

from epubspoon.ingestion.extractor import EpubExtractor
from epubspoon.ingestion.hashing import content_hash, file_content_hash
from epubspoon.ingestion.segmenter import Segmenter, count_words, split_sentences

__all__ = [
    "EpubExtractor",
    "Segmenter",
    "content_hash",
    "count_words",
    "file_content_hash",
    "split_sentences",
]
