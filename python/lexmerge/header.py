"""Entry-count header maintenance for dictionary files.

The first line of a .dic file holds the number of entries that follow:

    2
    apple
    zebra

Appending "mango" must leave "3" in that line. The count is rewritten in
place when the new digits fit in the old header field (padded with trailing
spaces, which Hunspell ignores); otherwise the file is rewritten through a
temporary file that replaces the original.
"""

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, NamedTuple, Optional

from .errors import FormatError, InvalidArgumentError, IOFailure
from .schema import DictionaryFormat

# Bytes scanned for the header line before giving up
MAX_HEADER_BYTES = 100

COUNT_PATTERN = re.compile(r"^[0-9]+$")

logger = logging.getLogger(__name__)


class HeaderPatch(NamedTuple):
    """Outcome of HeaderPatcher.patch()."""

    previous: int
    current: int
    rewritten: bool


class _HeaderField(NamedTuple):
    raw: bytes          # Header bytes, separator excluded
    width: int          # Bytes available for the count
    body_offset: int    # Offset of the first entry line


class HeaderPatcher:
    """Reads, appends to and re-counts a dictionary file in place."""

    def __init__(
        self,
        path: Path | str,
        fmt: Optional[DictionaryFormat] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.path = Path(path)
        self.fmt = fmt or DictionaryFormat()
        self.log = log or logger

    def _read_field(self) -> _HeaderField:
        try:
            with open(self.path, "rb") as f:
                data = f.read(MAX_HEADER_BYTES)
        except FileNotFoundError as e:
            raise IOFailure(f"Dictionary not found: {self.path}") from e
        except OSError as e:
            raise IOFailure(f"Failed to read dictionary {self.path}: {e}") from e

        for i in range(len(data)):
            if data[i:i + 1] == b"\n":
                raw = data[:i]
                width = i - 1 if raw.endswith(b"\r") else i
                return _HeaderField(raw[:width], width, i + 1)

        if len(data) == MAX_HEADER_BYTES:
            raise FormatError(
                f"No header line within the first {MAX_HEADER_BYTES} bytes "
                f"of {self.path}"
            )
        # Header without a trailing separator and no entries
        return _HeaderField(data, len(data), len(data))

    def read_count(self) -> int:
        """Parse the entry count from the first line.

        Raises:
            FormatError: If the first line is not a decimal integer.
            IOFailure: If the file cannot be read.
        """
        field = self._read_field()
        try:
            text = field.raw.decode(self.fmt.encoding).strip()
        except UnicodeDecodeError as e:
            raise FormatError(f"Unreadable header in {self.path}") from e

        if not COUNT_PATTERN.match(text):
            raise FormatError(f"Header of {self.path} is not an entry count: {text!r}")
        return int(text)

    def append(self, words: Iterable[str]) -> int:
        """Append words, one per line, at the end of the file.

        Returns:
            Number of entries appended.
        """
        words = list(words)
        if not words:
            return 0

        try:
            payload = b"".join(self.fmt.encode_line(w) for w in words)
        except UnicodeEncodeError as e:
            raise InvalidArgumentError(
                f"Word cannot be encoded as {self.fmt.encoding}: {e.object!r}"
            ) from e

        try:
            with open(self.path, "r+b") as f:
                size = f.seek(0, os.SEEK_END)
                if size:
                    f.seek(size - 1)
                    if f.read(1) != b"\n":
                        f.write(self.fmt.line_separator.encode(self.fmt.encoding))
                f.write(payload)
        except OSError as e:
            raise IOFailure(f"Failed to append to dictionary {self.path}: {e}") from e

        return len(words)

    def write_count(self, count: int) -> bool:
        """Store a new entry count in the header.

        Returns:
            True if the whole file had to be rewritten because the new count
            does not fit in the existing header field.
        """
        field = self._read_field()
        digits = str(count).encode(self.fmt.encoding)

        if len(digits) <= field.width:
            try:
                with open(self.path, "r+b") as f:
                    f.write(digits.ljust(field.width, b" "))
            except OSError as e:
                raise IOFailure(f"Failed to update header of {self.path}: {e}") from e
            return False

        self._rewrite(digits, field.body_offset)
        return True

    def _rewrite(self, digits: bytes, body_offset: int) -> None:
        """Copy the file under a fresh header line, then swap it in."""
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".hdr", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "wb") as out, open(self.path, "rb") as src:
                out.write(digits + self.fmt.line_separator.encode(self.fmt.encoding))
                src.seek(body_offset)
                shutil.copyfileobj(src, out)
            shutil.copymode(self.path, tmp_name)
            os.replace(tmp_name, self.path)
        except OSError as e:
            _unlink_quietly(tmp_name)
            raise IOFailure(f"Failed to rewrite header of {self.path}: {e}") from e
        except BaseException:
            _unlink_quietly(tmp_name)
            raise

    def patch(self, words: Iterable[str]) -> HeaderPatch:
        """Append words and bump the header count accordingly.

        The count is parsed before anything is written, so a FormatError
        leaves the file untouched.
        """
        words = list(words)
        previous = self.read_count()
        self.log.debug("Dictionary %s had %d entries", self.path, previous)

        if not words:
            return HeaderPatch(previous, previous, False)

        self.append(words)
        current = previous + len(words)
        self.log.debug("Updating number of entries in %s to %d", self.path, current)
        rewritten = self.write_count(current)
        return HeaderPatch(previous, current, rewritten)


def _unlink_quietly(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
