"""
Loader for query tables.

A query file is plain text with one entry per line and whitespace-separated
columns. The first non-empty line decides the table shape for the whole file:

- 1 column: a set of ids
- 2 columns: a mapping of id to target energy
"""

from pathlib import Path
from typing import Dict, Set

from .models import QueryTable


class QueryFormatError(ValueError):
    """Raised when a query file has an unsupported shape or a malformed value."""


def _parse_target_energy(value: str, filename: str, line_number: int) -> float:
    try:
        return float(value)
    except ValueError:
        raise QueryFormatError(
            f"{filename}, line {line_number}: malformed energy column {value!r}"
        )


def load_query_table(filename: str) -> QueryTable:
    """
    Load a query file into a QueryTable.

    Duplicate ids collapse in a 1-column file; in a 2-column file the last
    energy seen for an id wins.

    Args:
        filename: Path to the query file

    Returns:
        QueryTable: Table holding either names or names with target energies

    Raises:
        FileNotFoundError: If the query file doesn't exist
        QueryFormatError: If the file is empty, its first line has neither
            1 nor 2 columns, or an energy column is not a number
    """
    filepath = Path(filename)
    names: Set[str] = set()
    energies: Dict[str, float] = {}
    width = 0

    with open(filepath, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, 1):
            items = line.split()
            if not items:
                continue

            if width == 0:
                width = len(items)
                if width not in (1, 2):
                    raise QueryFormatError(
                        f"{filename}, line {line_number}: expected 1 or 2 columns, "
                        f"found {width}"
                    )

            if width == 1:
                names.add(line.strip())
            else:
                if len(items) < 2:
                    raise QueryFormatError(
                        f"{filename}, line {line_number}: missing energy column"
                    )
                energies[items[0]] = _parse_target_energy(items[1], filename, line_number)

    if width == 0:
        raise QueryFormatError(f"Query file is empty: {filename}")

    if width == 1:
        return QueryTable.from_names(names)
    return QueryTable.from_energies(energies)
