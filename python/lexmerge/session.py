"""Spell session: a live spell-engine handle plus the words added to it.

Usage:
    with SpellSession("pt_BR.dic", "pt_BR.aff", encoding="ISO-8859-1",
                      locale_name="pt_BR.ISO-8859-1") as session:
        if not session.spell("borogodó"):
            session.add("borogodó")
        session.update_dictionary()
"""

import logging
import warnings
from pathlib import Path
from typing import Optional

from . import config as cfg
from .diff import DiffTracker
from .engine import SpellEngine, get_engine_class
from .errors import EngineFailure, InvalidArgumentError, InvalidStateError
from .schema import DictionaryFormat, UpdateStats
from .sorting import Collation, ExternalSorter
from .updater import DictionaryUpdater

logger = logging.getLogger(__name__)


class SpellSession:
    """Object-oriented wrapper around one spell-engine handle.

    Every word operation first checks that the handle is still open and that
    the word fits the engine's length limit. Words accepted by add() and
    add_with_affix() are remembered so update_dictionary() can persist them.
    """

    def __init__(
        self,
        dictionary_path: Path | str,
        affix_path: Path | str,
        key: Optional[str] = None,
        *,
        encoding: Optional[str] = None,
        locale_name: Optional[str] = None,
        engine: Optional[str] = None,
        max_word_bytes: Optional[int] = None,
        log: Optional[logging.Logger] = None,
        **sort_options,
    ):
        """Open a session.

        Args:
            dictionary_path: Path to the .dic file.
            affix_path: Path to the .aff file.
            key: Key of an encrypted (hunzipped) dictionary.
            encoding: Dictionary file encoding (config default if None).
            locale_name: Collation locale for sorting the dictionary.
            engine: Registered engine name (config default if None).
            max_word_bytes: Longest accepted word, in encoded bytes.
            log: Logger receiving progress messages.
            **sort_options: Passed to ExternalSorter (max_tmp_files,
                max_memory, tmp_dir, dedup).
        """
        self.dictionary_path = Path(dictionary_path)
        self.affix_path = Path(affix_path)
        self.log = log or logger
        self.fmt = DictionaryFormat()
        if encoding:
            self.fmt.encoding = encoding
        self.collation = Collation(
            locale_name if locale_name is not None else cfg.default_locale()
        )
        self.max_word_bytes = max_word_bytes or cfg.default_max_word_bytes()
        self._sort_options = sort_options
        self._diff = DiffTracker()
        self._handle: Optional[SpellEngine] = None
        self._closed = False

        engine_cls = get_engine_class(engine or cfg.default_engine())
        handle = engine_cls(str(self.dictionary_path), str(self.affix_path), key)
        if handle is None:
            raise EngineFailure("Unable to instantiate spell engine handle")
        self._handle = handle

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._handle is None

    def close(self) -> None:
        """Destroy the engine handle. Safe to call more than once."""
        if self._closed or self._handle is None:
            return
        handle, self._handle = self._handle, None
        self._closed = True
        handle.destroy()

    def __enter__(self) -> "SpellSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self):
        if getattr(self, "_handle", None) is not None:
            warnings.warn(
                f"SpellSession for {self.dictionary_path} was not closed",
                ResourceWarning,
                stacklevel=2,
            )
            self.log.warning("Spell session for %s was not closed", self.dictionary_path)
            self.close()

    def _check_handle(self) -> SpellEngine:
        if self._handle is None and self._closed:
            raise InvalidStateError("This session has already been closed")
        if self._handle is None:
            raise InvalidStateError("Spell engine handle is missing, but the session was never closed")
        return self._handle

    def _check_word(self, name: str, value: str) -> None:
        encoding = self.fmt.encoding
        try:
            size = len(value.encode(encoding))
        except UnicodeEncodeError as e:
            raise InvalidArgumentError(
                f"Word '{name}' cannot be encoded as {encoding}: {value}"
            ) from e
        if size > self.max_word_bytes:
            raise InvalidArgumentError(
                f"Word '{name}' greater than max acceptable length "
                f"({self.max_word_bytes}): {value}"
            )

    # -------------------------------------------------------------------------
    # Word operations
    # -------------------------------------------------------------------------

    def spell(self, word: str) -> bool:
        """Return True if the word is spelled correctly."""
        handle = self._check_handle()
        self._check_word("word", word)
        return handle.spell(word)

    def is_correct(self, word: str) -> bool:
        """Same as spell()."""
        return self.spell(word)

    def suggest(self, word: str) -> list[str]:
        handle = self._check_handle()
        self._check_word("word", word)
        return handle.suggest(word)

    def analyze(self, word: str) -> list[str]:
        """Morphological analysis of the word."""
        handle = self._check_handle()
        self._check_word("word", word)
        return handle.analyze(word)

    def stem(self, word: str) -> list[str]:
        handle = self._check_handle()
        self._check_word("word", word)
        return handle.stem(word)

    def stem_analysis(self, analysis: list[str]) -> list[str]:
        """Stems from the results of analyze()."""
        handle = self._check_handle()
        return handle.stem_analysis(analysis)

    def generate(self, word: str, example: str) -> list[str]:
        """Forms of word modelled on example."""
        handle = self._check_handle()
        self._check_word("word", word)
        self._check_word("example", example)
        return handle.generate(word, example)

    def generate_analysis(self, word: str, analysis: list[str]) -> list[str]:
        """Forms of word modelled on the analysis of another word."""
        handle = self._check_handle()
        self._check_word("word", word)
        return handle.generate_analysis(word, analysis)

    def add(self, word: str) -> None:
        """Add a word to the runtime dictionary.

        Raises:
            EngineFailure: If the engine reports a non-zero status.
        """
        handle = self._check_handle()
        self._check_word("word", word)
        status = handle.add(word)
        if status != 0:
            raise EngineFailure(f"An error occurred when adding {word!r}: {status}", status)
        self._diff.record(word)

    def add_with_affix(self, word: str, example: str) -> None:
        """Add a word that takes the affix flags of example."""
        handle = self._check_handle()
        self._check_word("word", word)
        self._check_word("example", example)
        status = handle.add_with_affix(word, example)
        if status != 0:
            raise EngineFailure(
                f"An error occurred when adding {word!r} like {example!r}: {status}", status
            )
        self._diff.record(word)

    def remove(self, word: str) -> None:
        """Remove a word from the runtime dictionary."""
        handle = self._check_handle()
        self._check_word("word", word)
        status = handle.remove(word)
        if status != 0:
            raise EngineFailure(f"An error occurred when removing {word!r}: {status}", status)

    def dictionary_encoding(self) -> str:
        return self._check_handle().dictionary_encoding()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    @property
    def diff(self) -> frozenset[str]:
        """Words added during this session."""
        return self._diff.snapshot()

    def update_dictionary(self) -> UpdateStats:
        """Write the words added so far into the dictionary file.

        The added words stay recorded; they belong to the engine's runtime
        dictionary, not to the file. Only words not written by an earlier
        call are appended, so repeating the call leaves the file unchanged.
        """
        self._check_handle()
        sorter = ExternalSorter(self.collation, self.fmt, log=self.log, **self._sort_options)
        updater = DictionaryUpdater(self.dictionary_path, self.fmt, sorter=sorter, log=self.log)
        pending = self._diff.pending()
        stats = updater.update(pending)
        self._diff.mark_persisted(pending)
        return stats

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"SpellSession({self.dictionary_path}, {state}, {len(self._diff)} added)"
