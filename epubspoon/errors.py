"""Exception hierarchy for book import, caching and sync."""


class EpubSpoonError(Exception):
    """Base class for all EpubSpoon errors."""


class BookImportError(EpubSpoonError):
    """An import attempt failed; nothing was committed to the store."""

    user_message = "Could not read this file. Please make sure it is an .epub book."


class UnreadableContainer(BookImportError):
    """The container descriptor or package document is missing or malformed."""


class NoExtractableText(BookImportError):
    """The container parsed, but no chapter survived filtering."""

    user_message = "This book has no text content."


class CacheCorrupt(EpubSpoonError):
    """A stored book record could not be deserialized."""


class SyncUnavailable(EpubSpoonError):
    """The change notification channel could not be reached."""
