"""Error types raised by lexmerge.

All errors derive from LexmergeError so callers can catch the whole family.
Argument and format errors also derive from ValueError, I/O failures from
OSError, so generic handlers keep working.
"""

from typing import Optional


class LexmergeError(Exception):
    """Base class for all lexmerge errors."""


class InvalidStateError(LexmergeError):
    """Operation attempted on a closed or never-opened session."""


class InvalidArgumentError(LexmergeError, ValueError):
    """A word (or other argument) was rejected before reaching the engine."""


class FormatError(LexmergeError, ValueError):
    """The dictionary header line is not a parseable entry count."""


class IOFailure(LexmergeError, OSError):
    """Opening, reading, writing or renaming a file failed."""


class EngineFailure(LexmergeError):
    """The spell engine could not be created or reported a failure status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
