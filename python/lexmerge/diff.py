"""Tracks words added during a spell session.

The tracker is not thread-safe: one session owns it and only that session
writes to it.
"""

from typing import Iterable, Iterator


class DiffTracker:
    """Set of words added at runtime.

    Words stay recorded after they are written to the dictionary file;
    mark_persisted() only moves them out of pending() so the next update
    does not append them again.
    """

    def __init__(self):
        self._words: set[str] = set()
        self._persisted: set[str] = set()

    def record(self, word: str) -> None:
        """Remember a word. Recording the same word twice is a no-op."""
        self._words.add(word)

    def snapshot(self) -> frozenset[str]:
        """Return every recorded word without clearing them."""
        return frozenset(self._words)

    def pending(self) -> frozenset[str]:
        """Return the recorded words not yet written to the file."""
        return frozenset(self._words - self._persisted)

    def mark_persisted(self, words: Iterable[str]) -> None:
        """Note that words now live in the dictionary file."""
        self._persisted.update(w for w in words if w in self._words)

    def __len__(self) -> int:
        return len(self._words)

    def __contains__(self, word: object) -> bool:
        return word in self._words

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"DiffTracker({len(self._words)} added, {len(self.pending())} pending)"
