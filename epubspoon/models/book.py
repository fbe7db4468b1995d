"""Book data models."""

from pydantic import BaseModel, ConfigDict, Field


class ExtractedBook(BaseModel):
    """The result of extracting an EPUB container.

    Contains the book title and one plain-text string per spine item
    that survived boilerplate filtering, in reading order.
    """

    title: str
    chapter_texts: list[str] = Field(default_factory=list)


class BookRecord(BaseModel):
    """A segmented book, cached once per distinct content hash.

    ``chapters`` is None for records written before chapters were stored;
    treat None as unknown, not empty.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    chapters: list[str] | None = None
    segments: list[str]


class ImportedBook(BaseModel):
    """A book ready for reading: its hash, record and starting position."""

    content_hash: str
    record: BookRecord
    current_index: int = 0
    from_cache: bool = False
