"""
Unit tests for the split-scoped line reader and split planning.

Includes property-based testing with hypothesis for split boundaries.
"""

import gzip
import os

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from file_formats.core.errors import ConfigError, MalformedInputError
from file_formats.core.models import CombinedFileSplit, FileSplit
from file_formats.input import LineRecordReader, list_input_files, plan_splits, split_file


def read_all(split, **kwargs):
    with LineRecordReader(split, **kwargs) as reader:
        return list(reader)


@pytest.mark.unit
class TestLineRecordReader:
    """Tests for LineRecordReader"""

    def test_reads_lines_with_offsets(self, write_file, whole_file_split):
        path = write_file("a.txt", ["one", "two", "three"])
        assert read_all(whole_file_split(path)) == [(0, "one"), (4, "two"), (8, "three")]

    def test_strips_crlf(self, write_file, whole_file_split):
        path = write_file("a.txt", ["one", "two"], newline="\r\n")
        assert [line for _, line in read_all(whole_file_split(path))] == ["one", "two"]

    def test_skips_blank_lines_by_default(self, write_file, whole_file_split):
        path = write_file("a.txt", ["one", "", "  ", "two"])
        assert [line for _, line in read_all(whole_file_split(path))] == ["one", "two"]
        assert len(read_all(whole_file_split(path), skip_blank_lines=False)) == 4

    def test_skip_header(self, write_file, whole_file_split):
        path = write_file("a.csv", ["id,name", "1,a"])
        assert read_all(whole_file_split(path), skip_header=True) == [(8, "1,a")]

    def test_skip_header_ignored_for_later_splits(self, write_file):
        path = write_file("a.csv", ["id,name", "1,a", "2,b"])
        reader = LineRecordReader(FileSplit(path=path, start=5, length=100), skip_header=True)
        assert not reader.skip_header
        assert [line for _, line in read_all(FileSplit(path=path, start=5, length=100))] == ["1,a", "2,b"]

    def test_split_not_at_file_start_discards_partial_line(self, write_file):
        path = write_file("a.txt", ["aaaa", "bbbb", "cccc"])
        # starts inside "aaaa"
        assert read_all(FileSplit(path=path, start=2, length=100)) == [(5, "bbbb"), (10, "cccc")]

    def test_line_straddling_end_belongs_to_split(self, write_file):
        path = write_file("a.txt", ["aaaa", "bbbb", "cccc"])
        # ends inside "bbbb"
        assert read_all(FileSplit(path=path, start=0, length=7)) == [(0, "aaaa"), (5, "bbbb")]

    def test_gzip_file(self, tmp_path):
        path = tmp_path / "a.txt.gz"
        with gzip.open(path, "wt") as f:
            f.write("one\ntwo\n")
        split = FileSplit(path=str(path), start=0, length=os.path.getsize(path))
        assert [line for _, line in read_all(split)] == ["one", "two"]

    def test_gzip_file_cannot_be_split(self, tmp_path):
        path = tmp_path / "a.txt.gz"
        with gzip.open(path, "wt") as f:
            f.write("one\n")
        with pytest.raises(ValueError):
            LineRecordReader(FileSplit(path=str(path), start=3, length=10)).open()

    def test_close_releases_handle(self, write_file, whole_file_split):
        reader = LineRecordReader(whole_file_split(write_file("a.txt", ["one"]))).open()
        assert reader.is_open
        reader.close()
        assert not reader.is_open
        reader.close()  # idempotent

    def test_closed_reader_stays_exhausted(self, write_file, whole_file_split):
        reader = LineRecordReader(whole_file_split(write_file("a.txt", ["one", "two"])))
        assert reader.next_line() == (0, "one")

        reader.close()

        assert reader.next_line() is None
        assert not reader.is_open
        with pytest.raises(ValueError):
            reader.open()

    def test_invalid_encoding_is_malformed(self, tmp_path, whole_file_split):
        path = tmp_path / "a.txt"
        path.write_bytes(b"one\n\xff\xfe\n")

        with LineRecordReader(whole_file_split(str(path))) as reader:
            assert reader.next_line() == (0, "one")
            with pytest.raises(MalformedInputError) as exc_info:
                reader.next_line()

        assert exc_info.value.path == str(path)
        assert exc_info.value.offset == 4
        assert "utf-8" in str(exc_info.value)

    @settings(max_examples=50, deadline=None)
    @given(
        st.lists(st.text(alphabet="abcxyz,é", min_size=1, max_size=12), min_size=1, max_size=30),
        st.integers(min_value=1, max_value=40),
    )
    def test_property_splits_cover_every_line_once(self, tmp_path_factory, lines, split_size):
        """Property test: any cut points yield every line exactly once, in order"""
        path = tmp_path_factory.mktemp("split") / "data.txt"
        path.write_bytes("".join(line + "\n" for line in lines).encode("utf-8"))
        size = os.path.getsize(path)

        read_lines = []
        for start in range(0, size, split_size):
            split = FileSplit(path=str(path), start=start, length=min(split_size, size - start))
            read_lines.extend(line for _, line in read_all(split))

        assert read_lines == lines


@pytest.mark.unit
class TestPlanSplits:
    """Tests for split planning"""

    def test_small_file_is_one_split(self, write_file):
        path = write_file("a.txt", ["one", "two"])
        assert plan_splits([path], max_split_size=1024) == [FileSplit(path=path, start=0, length=8, file_length=8)]

    def test_large_file_is_cut(self, write_file):
        path = write_file("a.txt", ["x" * 9] * 10)  # 100 bytes
        splits = split_file(path, max_split_size=30)

        assert [(s.start, s.length) for s in splits] == [(0, 30), (30, 30), (60, 30), (90, 10)]
        assert all(s.file_length == 100 for s in splits)

    def test_tail_within_slop_is_not_cut(self, write_file):
        path = write_file("a.txt", ["x" * 9] * 10)  # 100 bytes, 52 left after one split
        splits = split_file(path, max_split_size=48)

        assert [(s.start, s.length) for s in splits] == [(0, 48), (48, 52)]

    def test_gzip_file_is_never_cut(self, tmp_path):
        path = tmp_path / "a.txt.gz"
        with gzip.open(path, "wb") as f:
            f.write(os.urandom(4096))
        assert len(split_file(str(path), max_split_size=16)) == 1

    def test_directory_listing_skips_hidden_and_markers(self, write_file, tmp_path):
        write_file("in/b.txt", ["b"])
        write_file("in/a.txt", ["a"])
        write_file("in/_SUCCESS", [])
        write_file("in/.hidden", ["h"])

        files = list_input_files([str(tmp_path / "in")])
        assert [os.path.basename(f) for f in files] == ["a.txt", "b.txt"]

    def test_missing_path(self, tmp_path):
        with pytest.raises(ConfigError):
            plan_splits([str(tmp_path / "missing")])

    def test_invalid_split_size(self, write_file):
        with pytest.raises(ConfigError):
            plan_splits([write_file("a.txt", ["a"])], max_split_size=0)

    def test_combine_small_files(self, write_file):
        paths = [write_file(f"f{i}.txt", ["abcd"]) for i in range(5)]  # 5 bytes each
        planned = plan_splits(paths, max_split_size=12, combine_small_files=True)

        assert [type(s) for s in planned] == [CombinedFileSplit, CombinedFileSplit, FileSplit]
        assert planned[0].paths == paths[:2]
        assert planned[1].paths == paths[2:4]
        assert planned[2].path == paths[4]

    def test_large_file_ranges_are_not_combined(self, write_file):
        small = write_file("a.txt", ["ab"])
        large = write_file("b.txt", ["x" * 9] * 10)
        planned = plan_splits([small, large], max_split_size=30, combine_small_files=True)

        assert planned[0] == FileSplit(path=small, start=0, length=3, file_length=3)
        assert all(isinstance(s, FileSplit) and s.path == large for s in planned[1:])
