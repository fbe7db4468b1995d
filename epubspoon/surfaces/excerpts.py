"""Formatting and lookup helpers for excerpts shown on a surface."""


def label_excerpt(index: int, text: str) -> str:
    """Prefix an excerpt with its 1-based number, as sent to the assistant."""
    return f"[{index + 1}]\n{text}"


def progress_label(index: int, total: int) -> str:
    return f"{index + 1}/{total}"


def context_text(segments: list[str], end_index: int) -> str:
    """Build the "catch up" text: every excerpt read so far plus a footer.

    Args:
        segments: All excerpts of the book.
        end_index: Index of the current excerpt (inclusive).

    Returns:
        Labelled excerpts 1..end_index+1 separated by blank lines, followed
        by a note on how far the reader has got.
    """
    end_index = max(0, min(end_index, len(segments) - 1))
    body = "\n\n".join(label_excerpt(i, segments[i]) for i in range(end_index + 1))
    footer = (
        f"Above is what I have read so far (excerpts 1-{end_index + 1} "
        f"of {len(segments)}). Please keep helping me based on this content."
    )
    return f"{body}\n\n---\n{footer}"


def find_excerpt(segments: list[str], query: str, current_index: int) -> int | None:
    """Resolve a search query to an excerpt index.

    A number jumps to that 1-based excerpt, clamped to the book. Any other
    query finds the next excerpt containing it (case-insensitive), starting
    after the current one and wrapping around.

    Args:
        segments: All excerpts of the book.
        query: The user's search text.
        current_index: Index of the current excerpt.

    Returns:
        The target index, or None if nothing matches.
    """
    query = query.strip()
    if not query or not segments:
        return None

    try:
        number = int(query)
    except ValueError:
        number = None

    if number is not None:
        return max(0, min(number - 1, len(segments) - 1))

    needle = query.casefold()
    start = current_index + 1
    for offset in range(len(segments)):
        index = (start + offset) % len(segments)
        if needle in segments[index].casefold():
            return index
    return None
