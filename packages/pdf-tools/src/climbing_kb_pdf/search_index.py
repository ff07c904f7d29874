"""Inverted word index over chapter chunks.

The index is persisted with each chapter but queries scan chunk text
directly, so it is redundant for correctness and kept for lookups that
want a cheap candidate set.
"""

import re
from typing import Sequence

from climbing_kb_contracts import Chunk

MIN_WORD_LENGTH = 3

_SPLIT_RE = re.compile(r"\W+")


def tokenize(text: str) -> list[str]:
    """Lower-case, split on non-word runs, keep words longer than 2 chars.

    Example:
        >>> tokenize("Belay the LEADER, o.k.?")
        ['belay', 'the', 'leader']
    """
    return [
        word for word in _SPLIT_RE.split(text.lower()) if len(word) >= MIN_WORD_LENGTH
    ]


def build_search_index(chunks: Sequence[Chunk]) -> dict[str, list[int]]:
    """Map each word to the sorted, distinct ids of chunks containing it."""
    index: dict[str, set[int]] = {}
    for chunk in chunks:
        for word in tokenize(chunk.text):
            index.setdefault(word, set()).add(chunk.id)

    return {word: sorted(ids) for word, ids in index.items()}
