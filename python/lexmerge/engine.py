"""Pluggable spell-engine backends.

A spell engine is an opaque handle over an affix file and a dictionary file.
lexmerge only needs it to check and add words; the dictionary file itself is
maintained by lexmerge.updater.

Backends:
    - hunspell: pyhunspell bindings to libhunspell (requires system install)

Usage:
    from lexmerge.engine import get_engine_class
    engine = get_engine_class("hunspell")("en_US.dic", "en_US.aff")
    engine.spell("hello")

    # Register custom backend
    from lexmerge.engine import register_engine
    register_engine("custom", MyEngineClass)
"""

import re
from abc import ABC, abstractmethod
from typing import Optional

from .errors import EngineFailure

# Registry of available engines
_ENGINES: dict[str, type["SpellEngine"]] = {}
_DEFAULT_ENGINE: str = "hunspell"

# "st:" fields of a Hunspell morphological analysis
_STEM_FIELD = re.compile(r"\bst:(\S+)")


class SpellEngine(ABC):
    """Base class for spell-engine backends.

    Subclasses are constructed as cls(dictionary_path, affix_path, key) and
    raise EngineFailure if the handle cannot be created.
    add/add_with_affix/remove return the engine's status code; 0 means
    success.
    """

    name: str = "base"

    @abstractmethod
    def spell(self, word: str) -> bool:
        pass

    @abstractmethod
    def suggest(self, word: str) -> list[str]:
        pass

    @abstractmethod
    def analyze(self, word: str) -> list[str]:
        pass

    @abstractmethod
    def stem(self, word: str) -> list[str]:
        pass

    def stem_analysis(self, analysis: list[str]) -> list[str]:
        """Stems named by the "st:" fields of previous analyze() results."""
        stems: list[str] = []
        for item in analysis:
            for stem in _STEM_FIELD.findall(item):
                if stem not in stems:
                    stems.append(stem)
        return stems

    @abstractmethod
    def generate(self, word: str, example: str) -> list[str]:
        pass

    @abstractmethod
    def generate_analysis(self, word: str, analysis: list[str]) -> list[str]:
        pass

    @abstractmethod
    def add(self, word: str) -> int:
        pass

    @abstractmethod
    def add_with_affix(self, word: str, example: str) -> int:
        pass

    @abstractmethod
    def remove(self, word: str) -> int:
        pass

    @abstractmethod
    def dictionary_encoding(self) -> str:
        pass

    def destroy(self) -> None:
        """Release the native handle. Called exactly once by the session."""


# =============================================================================
# Hunspell Backend
# =============================================================================

class HunspellEngine(SpellEngine):
    """pyhunspell-based engine.

    Install: pip install hunspell (needs libhunspell headers)
    """

    name = "hunspell"

    def __init__(self, dictionary_path: str, affix_path: str, key: Optional[str] = None):
        try:
            import hunspell
        except ImportError as e:
            raise ImportError(
                "hunspell required. Install: pip install hunspell"
            ) from e

        if key is not None:
            raise EngineFailure("Encrypted (hunzip) dictionaries are not supported by pyhunspell")

        try:
            self._hs = hunspell.HunSpell(dictionary_path, affix_path)
        except Exception as e:
            raise EngineFailure(f"Unable to create Hunspell handle: {e}") from e
        self._encoding = self._hs.get_dic_encoding()

    def _decode(self, items) -> list[str]:
        return [
            i.decode(self._encoding, errors="replace") if isinstance(i, bytes) else i
            for i in items
        ]

    def spell(self, word: str) -> bool:
        return bool(self._hs.spell(word))

    def suggest(self, word: str) -> list[str]:
        return self._decode(self._hs.suggest(word))

    def analyze(self, word: str) -> list[str]:
        return self._decode(self._hs.analyze(word))

    def stem(self, word: str) -> list[str]:
        return self._decode(self._hs.stem(word))

    def generate(self, word: str, example: str) -> list[str]:
        return self._decode(self._hs.generate(word, example))

    def generate_analysis(self, word: str, analysis: list[str]) -> list[str]:
        return self._decode(self._hs.generate2(word, " ".join(analysis)))

    def add(self, word: str) -> int:
        return self._hs.add(word)

    def add_with_affix(self, word: str, example: str) -> int:
        return self._hs.add_with_affix(word, example)

    def remove(self, word: str) -> int:
        return self._hs.remove(word)

    def dictionary_encoding(self) -> str:
        return self._encoding

    def destroy(self) -> None:
        self._hs = None


# =============================================================================
# Registry
# =============================================================================

def _init_registry():
    """Initialize the engine registry."""
    _ENGINES["hunspell"] = HunspellEngine


_init_registry()


def get_engine_class(name: Optional[str] = None) -> type[SpellEngine]:
    """Get an engine class by name (default engine if None)."""
    name = name or _DEFAULT_ENGINE
    if name not in _ENGINES:
        raise ValueError(
            f"Unknown engine: {name}. "
            f"Available: {list(_ENGINES.keys())}"
        )
    return _ENGINES[name]


def register_engine(name: str, cls: type[SpellEngine]) -> None:
    """Register a custom engine.

    Args:
        name: Name to register under.
        cls: SpellEngine subclass.
    """
    _ENGINES[name] = cls


def unregister_engine(name: str) -> None:
    """Remove an engine from the registry."""
    _ENGINES.pop(name, None)


def list_engines() -> list[str]:
    """List available engine names."""
    return list(_ENGINES.keys())
