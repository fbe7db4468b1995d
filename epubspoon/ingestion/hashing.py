"""Content hashing for cache and progress keys."""

import hashlib
from pathlib import Path

_READ_CHUNK = 8192


def content_hash(data: bytes) -> str:
    """Return the 32-hex-character MD5 digest of raw file bytes."""
    return hashlib.md5(data).hexdigest()


def file_content_hash(file_path: str | Path) -> str:
    """Hash a file on disk without loading it into memory at once.

    Args:
        file_path: Path to the book file.

    Returns:
        The same digest ``content_hash`` would produce for the file's bytes.
    """
    digest = hashlib.md5()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(_READ_CHUNK), b""):
            digest.update(chunk)
    return digest.hexdigest()
