import gzip
from pathlib import Path

import pytest

from mol2grep.utils import format_energy, open_gzip_writer, read_input_list, shard_filename


@pytest.mark.parametrize("value, text", [
    (-10.0, "-10"),
    (100.0, "100"),
    (-10.37, "-10.37"),
    (0.1, "0.1"),
    (1e-7, "0.0000001"),
    (1e20, "100000000000000000000"),
    (float("nan"), "NaN"),
    (float("-inf"), "-inf"),
])
def test_format_energy(value, text):
    assert format_energy(value) == text


def test_format_energy_reads_back_exactly():
    for value in (-10.37, -7.123456789012345, 1 / 3):
        assert float(format_energy(value)) == value


def test_shard_filename_is_zero_padded():
    assert shard_filename("split", 0) == "split.0000.mol2.gz"
    assert shard_filename("out/part", 12) == "out/part.0012.mol2.gz"


def test_read_input_list_splits_on_any_whitespace(tmp_path: Path):
    path = tmp_path / "inputs.txt"
    path.write_text("a.mol2.gz b.mol2.gz\n\n  c.mol2.gz\t d.mol2.gz\n")
    assert read_input_list(str(path)) == ["a.mol2.gz", "b.mol2.gz", "c.mol2.gz", "d.mol2.gz"]


def test_gzip_writer_creates_parent_directories(tmp_path: Path):
    path = tmp_path / "nested" / "out.mol2.gz"
    with open_gzip_writer(str(path)) as handle:
        handle.write("line\r\n")
    assert gzip.decompress(path.read_bytes()) == b"line\r\n"
