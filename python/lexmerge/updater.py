"""Merge runtime word additions back into a dictionary file.

Pipeline:
  1) Validate the header of the live file (FormatError leaves it untouched).
  2) Copy the live file to a staging file in the same directory.
  3) Append the new words to the staging copy and bump its entry count.
  4) External-sort the staging copy in collation order.
  5) os.replace() the staging copy over the live file.

The live file is only ever replaced by a complete, counted, sorted copy.
Only one updater may write a given dictionary path at a time; concurrent
updates of the same path are not supported.
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, Optional

from . import config as cfg
from .errors import IOFailure
from .header import HeaderPatcher
from .schema import DictionaryFormat, UpdateStats
from .sorting import Collation, ExternalSorter, remove_files

logger = logging.getLogger(__name__)


class DictionaryUpdater:
    """Appends words to a dictionary file and re-sorts it."""

    def __init__(
        self,
        path: Path | str,
        fmt: Optional[DictionaryFormat] = None,
        collation: Optional[Collation] = None,
        sorter: Optional[ExternalSorter] = None,
        log: Optional[logging.Logger] = None,
    ):
        """Initialize updater.

        Args:
            path: Dictionary (.dic) file to maintain.
            fmt: File encoding and line separator.
            collation: Sort order; ignored when a sorter is given.
            sorter: Preconfigured external sorter.
            log: Logger receiving progress messages.
        """
        self.path = Path(path)
        self.fmt = fmt or DictionaryFormat()
        self.log = log or logger
        self.sorter = sorter or ExternalSorter(collation, self.fmt, log=self.log)

    def _stage(self) -> str:
        """Copy the live file to a new staging file next to it."""
        fd, staging = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".staging", dir=self.path.parent
        )
        os.close(fd)
        try:
            shutil.copyfile(self.path, staging)
        except OSError as e:
            remove_files([staging])
            raise IOFailure(f"Failed to stage dictionary {self.path}: {e}") from e
        return staging

    def update(self, words: Iterable[str]) -> UpdateStats:
        """Add words to the dictionary file, fix its count and sort it.

        Args:
            words: Words to add. Duplicates are collapsed.

        Returns:
            UpdateStats describing the new file.
        """
        words = sorted(set(words))
        self.log.debug("Updating dictionary %s", self.path)

        HeaderPatcher(self.path, self.fmt, self.log).read_count()

        staging: Optional[str] = self._stage()
        try:
            patcher = HeaderPatcher(staging, self.fmt, self.log)
            patch = patcher.patch(words)

            self.log.debug("Sorting dictionary %s", self.path)
            result = self.sorter.sort_file(staging)

            stats = UpdateStats(
                path=str(self.path),
                previous_count=patch.previous,
                added=len(words),
                final_count=patch.current,
                batches=result.batches,
                duplicates_dropped=result.dropped,
                header_rewritten=patch.rewritten,
            )

            if result.written != patch.current:
                if not result.dropped:
                    self.log.warning(
                        "Header of %s claimed %d entries but %d were found",
                        self.path, patch.current, result.written,
                    )
                stats.header_rewritten |= patcher.write_count(result.written)
                stats.final_count = result.written

            shutil.copymode(self.path, staging)
            os.replace(staging, self.path)
            staging = None
        except OSError as e:
            if isinstance(e, IOFailure):
                raise
            raise IOFailure(f"Failed to update dictionary {self.path}: {e}") from e
        finally:
            if staging is not None:
                remove_files([staging])

        self.log.debug("Dictionary %s updated: %r", self.path, stats)
        return stats


def update_dictionary(
    path: Path | str,
    words: Iterable[str],
    *,
    encoding: Optional[str] = None,
    line_separator: Optional[str] = None,
    locale_name: Optional[str] = None,
    dedup: Optional[bool] = None,
    max_tmp_files: Optional[int] = None,
    max_memory: Optional[int] = None,
    tmp_dir: Optional[str] = None,
    log: Optional[logging.Logger] = None,
) -> UpdateStats:
    """Convenience function to merge words into a dictionary file.

    Args:
        path: Path to .dic file.
        words: Words to add.
        encoding: File encoding (config default if None).
        line_separator: Separator for written lines (config default if None).
        locale_name: Collation locale (config default if None).
        dedup: Drop entries equal under the collation.
        max_tmp_files: Upper bound on sort batch files.
        max_memory: Memory budget in bytes for sort batches.
        tmp_dir: Directory for sort batch files.
        log: Logger receiving progress messages.

    Returns:
        UpdateStats for the updated file.
    """
    fmt = DictionaryFormat()
    if encoding:
        fmt.encoding = encoding
    if line_separator:
        fmt.line_separator = line_separator

    sorter = ExternalSorter(
        Collation(locale_name if locale_name is not None else cfg.default_locale()),
        fmt,
        max_tmp_files=max_tmp_files,
        max_memory=max_memory,
        tmp_dir=tmp_dir,
        dedup=dedup,
        log=log,
    )
    return DictionaryUpdater(path, fmt, sorter=sorter, log=log).update(words)
