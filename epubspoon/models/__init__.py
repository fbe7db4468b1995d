"""Data models for the EpubSpoon application."""

from epubspoon.models.book import BookRecord, ExtractedBook, ImportedBook
from epubspoon.models.state import (
    ErrorState,
    IdleState,
    LoadingState,
    ReadyState,
    SurfaceState,
)

__all__ = [
    "BookRecord",
    "ErrorState",
    "ExtractedBook",
    "IdleState",
    "ImportedBook",
    "LoadingState",
    "ReadyState",
    "SurfaceState",
]
