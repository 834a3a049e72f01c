"""Pytest configuration and fixtures."""

import pytest
import sys
import tempfile
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from lexmerge.engine import SpellEngine, register_engine, unregister_engine
from lexmerge.schema import DictionaryFormat


class FakeEngine(SpellEngine):
    """In-memory engine that knows the words of its .dic file."""

    name = "fake"
    add_status = 0
    remove_status = 0
    instances: list["FakeEngine"] = []

    def __init__(self, dictionary_path, affix_path, key=None):
        self.dictionary_path = dictionary_path
        self.affix_path = affix_path
        self.key = key
        self.destroyed = 0
        self.words: set[str] = set()
        with open(dictionary_path, encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if line_num == 1 or not line:
                    continue
                self.words.add(line.split("/")[0])
        FakeEngine.instances.append(self)

    def spell(self, word):
        return word in self.words

    def suggest(self, word):
        return sorted(w for w in self.words if w[:1] == word[:1])

    def analyze(self, word):
        return [f" st:{word} fl:X"] if word in self.words else []

    def stem(self, word):
        return [word] if word in self.words else []

    def generate(self, word, example):
        return [word + example[-1:]]

    def generate_analysis(self, word, analysis):
        return [word for _ in analysis]

    def add(self, word):
        if self.add_status == 0:
            self.words.add(word)
        return self.add_status

    def add_with_affix(self, word, example):
        return self.add(word)

    def remove(self, word):
        if self.remove_status == 0:
            self.words.discard(word)
        return self.remove_status

    def dictionary_encoding(self):
        return "UTF-8"

    def destroy(self):
        self.destroyed += 1


@pytest.fixture
def fake_engine():
    """Register FakeEngine as "fake" for the duration of a test."""
    FakeEngine.instances = []
    FakeEngine.add_status = 0
    FakeEngine.remove_status = 0
    register_engine("fake", FakeEngine)
    yield FakeEngine
    unregister_engine("fake")


@pytest.fixture
def unix_format():
    """UTF-8 with \\n separators, independent of the host platform."""
    return DictionaryFormat(encoding="utf-8", line_separator="\n")


@pytest.fixture
def workdir():
    """Temporary directory holding the dictionary under test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_dic(workdir):
    """Write a dictionary file and return its path."""

    def _make(content: str | bytes, name: str = "words.dic") -> Path:
        path = workdir / name
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)
        return path

    return _make


@pytest.fixture
def sample_hunspell_content():
    """Sample Hunspell dictionary content."""
    return """5
hello
world
testing/ABC
sample/XYZ
python
"""


@pytest.fixture
def sample_portuguese_content():
    """Sample Portuguese dictionary content."""
    return """4
coração
abacaxi
ação
borogodó
"""


@pytest.fixture
def read_entries():
    """Split a dictionary file into (header, entry lines)."""

    def _read(path: Path) -> tuple[str, list[str]]:
        lines = path.read_text(encoding="utf-8").split("\n")
        assert lines[-1] == ""
        return lines[0], lines[1:-1]

    return _read
