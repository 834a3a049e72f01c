"""Data structures for lexmerge.

Dictionary file layout (Hunspell .dic):
    3               # Entry count (first line)
    apple           # One entry per line
    mango/AB        # Word with optional affix flags (kept verbatim)
    zebra
"""

from dataclasses import dataclass, field
from typing import Any

from . import config as cfg


@dataclass
class DictionaryFormat:
    """How a dictionary file is encoded on disk."""

    encoding: str = field(default_factory=cfg.default_encoding)
    line_separator: str = field(default_factory=cfg.default_line_separator)
    header_lines: int = 1

    def encode_line(self, text: str) -> bytes:
        """Encode one line, including its separator."""
        return (text + self.line_separator).encode(self.encoding)

    @staticmethod
    def strip_separator(line: str) -> str:
        """Drop a trailing \\r\\n or \\n."""
        if line.endswith("\r\n"):
            return line[:-2]
        if line.endswith("\n") or line.endswith("\r"):
            return line[:-1]
        return line


@dataclass
class UpdateStats:
    """Statistics from a dictionary update.

    added counts the distinct words appended before the sort. With dedup on,
    some of them may collate equal to existing entries and be dropped again;
    those show up in duplicates_dropped, and final_count is what survived.
    """

    path: str
    previous_count: int = 0
    added: int = 0              # Distinct words appended
    final_count: int = 0        # Entry lines after the merge
    batches: int = 0
    duplicates_dropped: int = 0
    header_rewritten: bool = False  # Header did not fit in place

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "path": self.path,
            "previous_count": self.previous_count,
            "added": self.added,
            "final_count": self.final_count,
            "batches": self.batches,
            "duplicates_dropped": self.duplicates_dropped,
            "header_rewritten": self.header_rewritten,
        }

    def __repr__(self) -> str:
        return (
            f"UpdateStats({self.path}: "
            f"{self.previous_count} -> {self.final_count}, "
            f"+{self.added}, {self.duplicates_dropped} dupes)"
        )
