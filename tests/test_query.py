from pathlib import Path

import pytest

from mol2grep.models import QueryKind
from mol2grep.query import QueryFormatError, load_query_table


def _write(tmp_path: Path, text: str) -> str:
    path = tmp_path / "query.txt"
    path.write_text(text)
    return str(path)


def test_single_column_loads_name_set(tmp_path: Path):
    table = load_query_table(_write(tmp_path, "ZINC1\nZINC2\n  ZINC3  \nZINC1\n"))

    assert table.kind is QueryKind.NAMES
    assert table.names == frozenset({"ZINC1", "ZINC2", "ZINC3"})
    assert len(table) == 3
    assert "ZINC3" in table.names
    assert not table.has_energy


def test_two_columns_load_energy_map_last_write_wins(tmp_path: Path):
    table = load_query_table(_write(tmp_path, "ZINC1\t-10.5\nZINC2 3\nZINC1\t-11.25\n"))

    assert table.kind is QueryKind.NAMES_WITH_ENERGY
    assert table.energies == {"ZINC1": -11.25, "ZINC2": 3.0}
    assert len(table) == 2
    assert table.has_energy


def test_leading_blank_lines_are_skipped(tmp_path: Path):
    table = load_query_table(_write(tmp_path, "\n   \nZINC1 -1.0\n\nZINC2 -2.0\n"))
    assert table.energies == {"ZINC1": -1.0, "ZINC2": -2.0}


def test_first_line_decides_shape(tmp_path: Path):
    # Extra columns after the first line are not re-validated
    table = load_query_table(_write(tmp_path, "ZINC1 -1.0\nZINC2 -2.0 extra\n"))
    assert table.energies == {"ZINC1": -1.0, "ZINC2": -2.0}


@pytest.mark.parametrize("text", ["ZINC1 -1.0 3\n", "a b c d\nZINC1\n"])
def test_unsupported_column_count_is_an_error(tmp_path: Path, text: str):
    with pytest.raises(QueryFormatError, match="expected 1 or 2 columns"):
        load_query_table(_write(tmp_path, text))


def test_malformed_energy_is_an_error(tmp_path: Path):
    with pytest.raises(QueryFormatError, match="line 3"):
        load_query_table(_write(tmp_path, "ZINC1 -1.0\nZINC2 -2.0\nZINC3 low\n"))


def test_missing_energy_after_first_line_is_an_error(tmp_path: Path):
    with pytest.raises(QueryFormatError, match="missing energy column"):
        load_query_table(_write(tmp_path, "ZINC1 -1.0\nZINC2\n"))


def test_empty_query_file_is_an_error(tmp_path: Path):
    with pytest.raises(QueryFormatError, match="empty"):
        load_query_table(_write(tmp_path, "\n\n"))


def test_missing_query_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_query_table(str(tmp_path / "missing.txt"))


def test_loads_fixture_queries(dataset):
    assert len(load_query_table(dataset.id_query)) == 10
    assert len(load_query_table(dataset.energy_query)) == 10
