"""
Lyrics pagination.

Verses are separated by a blank line ("\n\n"). Splitting is literal: no
trimming, no whitespace normalization, original order kept.
"""

from __future__ import annotations

VERSE_SEPARATOR = "\n\n"


def split_verses(text: str) -> list[str]:
    return text.split(VERSE_SEPARATOR)


def paginate(items: list[str], *, page: int, limit: int) -> list[str]:
    """
    Return the `page`-th window of `limit` items (1-based pages).

    A window starting past the end is empty rather than an error.
    """
    start = (page - 1) * limit
    if start < 0 or start >= len(items):
        return []
    end = min(start + limit, len(items))
    return items[start:end]
