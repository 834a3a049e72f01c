"""Tests for the updater module."""

import logging
import os

import pytest

from lexmerge.errors import FormatError, IOFailure
from lexmerge.sorting import Collation, ExternalSorter
from lexmerge.updater import DictionaryUpdater, update_dictionary


def make_updater(path, fmt, tmp_dir, **kwargs):
    sorter = ExternalSorter(
        Collation(None), fmt, max_tmp_files=1024, max_memory=2, tmp_dir=str(tmp_dir), **kwargs
    )
    return DictionaryUpdater(path, fmt, sorter=sorter)


class TestDictionaryUpdater:
    """Tests for DictionaryUpdater."""

    def test_apple_mango_zebra(self, make_dic, unix_format, tmp_path):
        """Test the new word is counted and sorted into place."""
        path = make_dic("2\napple\nzebra\n")
        stats = make_updater(path, unix_format, tmp_path).update({"mango"})
        assert path.read_bytes() == b"3\napple\nmango\nzebra\n"
        assert stats.previous_count == 2
        assert stats.final_count == 3
        assert stats.added == 1

    def test_empty_dictionary(self, make_dic, unix_format, read_entries, tmp_path):
        """Test adding one word to an empty dictionary."""
        path = make_dic("0\n")
        make_updater(path, unix_format, tmp_path).update(["first"])
        assert read_entries(path) == ("1", ["first"])

    def test_count_invariant(self, make_dic, unix_format, read_entries, sample_hunspell_content, tmp_path):
        """Test header == previous entries + distinct added words."""
        path = make_dic(sample_hunspell_content)
        added = ["zulu", "alpha", "zulu", "mike", "alpha"]
        stats = make_updater(path, unix_format, tmp_path).update(added)
        header, entries = read_entries(path)
        assert int(header) == 5 + 3
        assert len(entries) == int(header)
        assert entries == sorted(entries)
        assert stats.added == 3

    def test_count_grows_past_header_width(self, make_dic, unix_format, read_entries, tmp_path):
        """Test 9 + 2 entries widens the header correctly."""
        path = make_dic("9\n" + "".join(f"w{i}\n" for i in range(9)))
        stats = make_updater(path, unix_format, tmp_path).update(["a", "b"])
        header, entries = read_entries(path)
        assert header == "11"
        assert len(entries) == 11
        assert entries[:2] == ["a", "b"]
        assert stats.header_rewritten is True

    def test_idempotent(self, make_dic, unix_format, tmp_path, sample_portuguese_content):
        """Test a second update without additions changes nothing."""
        path = make_dic(sample_portuguese_content)
        updater = make_updater(path, unix_format, tmp_path)
        updater.update(["pão"])
        first = path.read_bytes()
        updater.update([])
        assert path.read_bytes() == first

    def test_no_words_still_sorts(self, make_dic, unix_format, read_entries, tmp_path):
        """Test an empty update re-sorts the file."""
        path = make_dic("2\nzebra\napple\n")
        stats = make_updater(path, unix_format, tmp_path).update([])
        assert read_entries(path) == ("2", ["apple", "zebra"])
        assert stats.added == 0

    def test_bad_header(self, make_dic, unix_format, workdir, tmp_path):
        """Test a non-numeric header fails before anything is written."""
        path = make_dic("words\napple\n")
        with pytest.raises(FormatError):
            make_updater(path, unix_format, tmp_path).update(["mango"])
        assert path.read_bytes() == b"words\napple\n"
        assert os.listdir(workdir) == ["words.dic"]

    def test_missing_dictionary(self, workdir, unix_format, tmp_path):
        """Test a missing file raises IOFailure."""
        with pytest.raises(IOFailure):
            make_updater(workdir / "missing.dic", unix_format, tmp_path).update(["x"])

    def test_sort_failure_keeps_original(self, make_dic, unix_format, workdir, tmp_path, monkeypatch):
        """Test the live file is untouched when sorting fails."""
        path = make_dic("2\nzebra\napple\n")
        updater = make_updater(path, unix_format, tmp_path)

        def broken_sort(*args, **kwargs):
            raise IOFailure("disk full")

        monkeypatch.setattr(updater.sorter, "sort_file", broken_sort)
        with pytest.raises(IOFailure):
            updater.update(["mango"])
        assert path.read_bytes() == b"2\nzebra\napple\n"
        assert os.listdir(workdir) == ["words.dic"]

    def test_dedup_recounts(self, make_dic, unix_format, read_entries, tmp_path):
        """Test dropped duplicates are reflected in the header."""
        path = make_dic("2\napple\nzebra\n")
        stats = make_updater(path, unix_format, tmp_path, dedup=True).update(["apple", "mango"])
        assert read_entries(path) == ("3", ["apple", "mango", "zebra"])
        assert stats.added == 2
        assert stats.duplicates_dropped == 1
        assert stats.final_count == 3

    def test_wrong_header_is_corrected(self, make_dic, unix_format, read_entries, tmp_path, caplog):
        """Test a header that lied about the entry count is fixed and logged."""
        path = make_dic("100\napple\nzebra\n")
        with caplog.at_level(logging.WARNING, logger="lexmerge.updater"):
            stats = make_updater(path, unix_format, tmp_path).update(["mango"])
        assert read_entries(path) == ("3  ", ["apple", "mango", "zebra"])
        assert stats.final_count == 3
        assert "claimed 101 entries but 3 were found" in caplog.text

    def test_injected_logger(self, make_dic, unix_format, tmp_path, caplog):
        """Test progress goes to the logger passed in."""
        log = logging.getLogger("custom.sink")
        path = make_dic("1\napple\n")
        sorter = ExternalSorter(Collation(None), unix_format, tmp_dir=str(tmp_path), log=log)
        with caplog.at_level(logging.DEBUG, logger="custom.sink"):
            DictionaryUpdater(path, unix_format, sorter=sorter, log=log).update(["kiwi"])
        assert any(r.name == "custom.sink" for r in caplog.records)


class TestUpdateDictionary:
    """Tests for the update_dictionary() convenience function."""

    def test_scenario(self, make_dic, tmp_path):
        """Test the convenience function end to end."""
        path = make_dic("2\napple\nzebra\n")
        stats = update_dictionary(path, ["mango"], line_separator="\n", tmp_dir=str(tmp_path))
        assert path.read_bytes() == b"3\napple\nmango\nzebra\n"
        assert stats.final_count == 3

    def test_latin1(self, make_dic, tmp_path):
        """Test the configured encoding is used for appended entries."""
        path = make_dic("1\nabacaxi\n".encode("iso-8859-1"))
        update_dictionary(
            path, ["ação"], encoding="iso-8859-1", line_separator="\n", tmp_dir=str(tmp_path)
        )
        assert path.read_bytes() == "2\nabacaxi\nação\n".encode("iso-8859-1")
