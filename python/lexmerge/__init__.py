"""lexmerge - keep Hunspell word lists counted and sorted.

Words added to a spell engine at runtime are merged back into the on-disk
.dic file: appended, counted in the header line, and the whole file is
re-sorted in locale collation order with a bounded-memory external sort.

Core concepts:
    - A SpellSession remembers every word its engine accepted
    - update_dictionary() appends them and fixes the entry count
    - The file is sorted externally and swapped in atomically

Example:
    "2 / apple / zebra" + add("mango") → "3 / apple / mango / zebra"

Usage:
    from lexmerge import SpellSession, update_dictionary

    with SpellSession("en_US.dic", "en_US.aff") as session:
        session.add("lexmerge")
        session.update_dictionary()

    # Without a spell engine
    update_dictionary("words.dic", ["mango"], locale_name="en_US.UTF-8")
"""

__version__ = "0.1.0"

from .diff import DiffTracker
from .errors import (
    EngineFailure,
    FormatError,
    InvalidArgumentError,
    InvalidStateError,
    IOFailure,
    LexmergeError,
)
from .header import HeaderPatcher
from .schema import DictionaryFormat, UpdateStats
from .session import SpellSession
from .sorting import Collation, ExternalSorter
from .updater import DictionaryUpdater, update_dictionary

__all__ = [
    "Collation",
    "DictionaryFormat",
    "DictionaryUpdater",
    "DiffTracker",
    "EngineFailure",
    "ExternalSorter",
    "FormatError",
    "HeaderPatcher",
    "InvalidArgumentError",
    "InvalidStateError",
    "IOFailure",
    "LexmergeError",
    "SpellSession",
    "UpdateStats",
    "update_dictionary",
]
