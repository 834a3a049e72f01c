"""External sort for dictionary files.

Dictionaries can be larger than the memory we are willing to spend, so the
entry lines are sorted the classic way:

    1) Split: stream entry lines into bounded in-memory batches, sort each
       batch with the collation and write it to a temporary batch file.
    2) Merge: k-way merge of all batch files through a heap, writing the
       header lines first and every entry in collation order after them.

The merged output is staged next to the destination and swapped in with
os.replace(), so a failure never leaves a truncated dictionary behind.
Batch files are removed on every exit path.

Complexity
- Time:  O(N log N) comparisons overall, O(N log K) for the merge.
- Space: one batch in memory during the split, one line per batch during
  the merge.
"""

import heapq
import locale
import logging
import math
import os
import shutil
import sys
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, NamedTuple, Optional

from . import config as cfg
from .errors import InvalidArgumentError, IOFailure
from .schema import DictionaryFormat

logger = logging.getLogger(__name__)


# ----------------------------
# Collation
# ----------------------------

class Collation:
    """Total order over entry lines.

    locale_name:
        None  -> code point order (no locale involved)
        ""    -> the collation locale of the environment (LANG/LC_*)
        other -> an explicit locale name, e.g. "pt_BR.UTF-8"

    Locale keys come from locale.strxfrm(), which reads the process-wide
    LC_COLLATE setting; key() must therefore be called inside activated().
    Lines that are equal under the collation but differ byte-wise are
    ordered by their text so repeated runs produce identical files.
    """

    def __init__(self, locale_name: Optional[str] = None):
        self.locale_name = locale_name
        if locale_name is not None:
            with self.activated():
                pass

    @contextmanager
    def activated(self) -> Iterator["Collation"]:
        """Switch LC_COLLATE to this collation's locale for the block."""
        if self.locale_name is None:
            yield self
            return

        previous = locale.setlocale(locale.LC_COLLATE)
        try:
            locale.setlocale(locale.LC_COLLATE, self.locale_name)
        except locale.Error as e:
            raise InvalidArgumentError(
                f"Unsupported collation locale: {self.locale_name!r}"
            ) from e
        try:
            yield self
        finally:
            locale.setlocale(locale.LC_COLLATE, previous)

    def key(self, text: str) -> str:
        """Collation key; keys of collation-equal strings compare equal."""
        if self.locale_name is None:
            return text
        return locale.strxfrm(text)

    def sort(self, lines: Iterable[str]) -> list[str]:
        return sorted(lines, key=lambda s: (self.key(s), s))

    def __repr__(self) -> str:
        return f"Collation({self.locale_name!r})"


# ----------------------------
# Batch files
# ----------------------------

class BatchReader:
    """Sequentially reads a batch file. Yields lines without separators."""

    def __init__(self, path: str, encoding: str):
        self.path = path
        self._f = open(path, "r", encoding=encoding, newline="")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __iter__(self):
        return self

    def __next__(self) -> str:
        line = self._f.readline()
        if not line:
            raise StopIteration
        return DictionaryFormat.strip_separator(line)

    def close(self) -> None:
        self._f.close()


def estimate_batch_bytes(file_size: int, max_tmp_files: int, max_memory: int) -> int:
    """Choose how many bytes of lines to hold in memory per batch.

    Large enough that no more than max_tmp_files batches are needed, and
    never below half of the memory budget.
    """
    block = math.ceil(file_size / max_tmp_files) if max_tmp_files > 0 else file_size
    return max(block, max_memory // 2, 1)


class SortResult(NamedTuple):
    """Outcome of ExternalSorter.sort_file()."""

    header: list[str]
    written: int        # Entry lines in the output (header excluded)
    dropped: int        # Duplicates removed when dedup is on
    batches: int


# ----------------------------
# Sorter
# ----------------------------

class ExternalSorter:
    """Bounded-memory sort of a dictionary file's entry lines."""

    def __init__(
        self,
        collation: Optional[Collation] = None,
        fmt: Optional[DictionaryFormat] = None,
        *,
        max_tmp_files: Optional[int] = None,
        max_memory: Optional[int] = None,
        tmp_dir: Optional[str] = None,
        dedup: Optional[bool] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.collation = collation or Collation(cfg.default_locale())
        self.fmt = fmt or DictionaryFormat()
        self.max_tmp_files = max_tmp_files or cfg.default_max_tmp_files()
        self.max_memory = max_memory or cfg.default_max_memory()
        self.tmp_dir = tmp_dir if tmp_dir is not None else cfg.default_tmp_dir()
        self.dedup = cfg.default_dedup() if dedup is None else dedup
        self.log = log or logger

    def _write_batch(self, lines: list[str]) -> str:
        """Sort lines in memory and store them in a new batch file."""
        lines = self.collation.sort(lines)
        if self.dedup:
            lines = list(_drop_equal(lines, self.collation))

        fd, path = tempfile.mkstemp(prefix="lexmerge-batch-", suffix=".tmp", dir=self.tmp_dir)
        try:
            with os.fdopen(fd, "w", encoding=self.fmt.encoding, newline="") as f:
                for line in lines:
                    f.write(line + self.fmt.line_separator)
        except BaseException:
            remove_files([path])
            raise
        return path

    def sort_in_batches(self, path: Path | str) -> tuple[list[str], list[str]]:
        """Split the file into sorted batch files.

        Returns:
            (header lines, batch file paths). The caller owns the batch files.
        """
        header: list[str] = []
        batch_paths: list[str] = []

        try:
            batch_bytes = estimate_batch_bytes(
                os.path.getsize(path), self.max_tmp_files, self.max_memory
            )
            with open(path, "r", encoding=self.fmt.encoding, newline="") as f:
                for _ in range(self.fmt.header_lines):
                    line = f.readline()
                    if not line:
                        break
                    header.append(DictionaryFormat.strip_separator(line))

                buffer: list[str] = []
                used = 0
                for line in f:
                    line = DictionaryFormat.strip_separator(line)
                    buffer.append(line)
                    used += sys.getsizeof(line)
                    if used >= batch_bytes:
                        batch_paths.append(self._write_batch(buffer))
                        buffer = []
                        used = 0

                # Flush the final (possibly partial) batch
                if buffer:
                    batch_paths.append(self._write_batch(buffer))
        except (OSError, UnicodeError) as e:
            remove_files(batch_paths)
            raise IOFailure(f"Failed to split {path} into sort batches: {e}") from e
        except BaseException:
            remove_files(batch_paths)
            raise

        self.log.debug("Split %s into %d sorted batches", path, len(batch_paths))
        return header, batch_paths

    def merge_batches(
        self,
        batch_paths: list[str],
        output: Path | str,
        header: Optional[list[str]] = None,
    ) -> tuple[int, int]:
        """K-way merge of sorted batch files into output.

        Returns:
            (entry lines written, duplicates dropped).
        """
        sep = self.fmt.line_separator
        key = self.collation.key
        written = 0
        dropped = 0
        readers: list[BatchReader] = []

        try:
            for p in batch_paths:
                readers.append(BatchReader(p, self.fmt.encoding))

            # Min-heap of (collation key, line, src_idx)
            heap: list[tuple[str, str, int]] = []
            for i, r in enumerate(readers):
                line = next(r, None)
                if line is not None:
                    heap.append((key(line), line, i))
            heapq.heapify(heap)

            with open(output, "w", encoding=self.fmt.encoding, newline="") as out:
                for line in header or []:
                    out.write(line + sep)

                last_key: Optional[str] = None
                while heap:
                    k, line, src = heapq.heappop(heap)
                    if self.dedup and written and k == last_key:
                        dropped += 1
                    else:
                        out.write(line + sep)
                        written += 1
                        last_key = k

                    # Advance the source batch
                    nxt = next(readers[src], None)
                    if nxt is not None:
                        heapq.heappush(heap, (key(nxt), nxt, src))
        except (OSError, UnicodeError) as e:
            raise IOFailure(f"Failed to merge sort batches into {output}: {e}") from e
        finally:
            for r in readers:
                r.close()

        return written, dropped

    def sort_file(self, path: Path | str, output: Path | str | None = None) -> SortResult:
        """Sort the entry lines of path, keeping its header lines first.

        The result replaces output (default: path itself) only once the merge
        has completed.
        """
        path = Path(path)
        output = Path(output) if output is not None else path
        self.log.debug("Sorting dictionary %s with %r", path, self.collation)

        batch_paths: list[str] = []
        staging: Optional[str] = None
        with self.collation.activated():
            try:
                header, batch_paths = self.sort_in_batches(path)
                fd, staging = tempfile.mkstemp(
                    prefix=f".{output.name}.", suffix=".sorting", dir=output.parent
                )
                os.close(fd)
                written, dropped = self.merge_batches(batch_paths, staging, header)
                if output.exists():
                    shutil.copymode(output, staging)
                os.replace(staging, output)
                staging = None
            except OSError as e:
                if isinstance(e, IOFailure):
                    raise
                raise IOFailure(f"Failed to sort dictionary {path}: {e}") from e
            finally:
                remove_files(batch_paths)
                if staging is not None:
                    remove_files([staging])

        if dropped:
            self.log.debug("Dropped %d duplicate entries from %s", dropped, output)
        return SortResult(header, written, dropped, len(batch_paths))


def _drop_equal(lines: list[str], collation: Collation) -> Iterator[str]:
    """Yield sorted lines, skipping ones collation-equal to the previous."""
    last: Optional[str] = None
    first = True
    for line in lines:
        k = collation.key(line)
        if first or k != last:
            yield line
        last = k
        first = False


def remove_files(paths: Iterable[str]) -> None:
    """Delete temporary files, ignoring ones that are already gone."""
    for p in paths:
        try:
            os.unlink(p)
        except FileNotFoundError:
            pass
