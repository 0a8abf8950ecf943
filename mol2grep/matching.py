"""Predicates deciding whether a record is accepted by a query table."""

from functools import partial
from typing import Callable, Dict, FrozenSet

from .models import MoleculeRecord, QueryKind, QueryTable


# Default maximum excess of a record's energy over its target
DEFAULT_TOLERANCE = 1e-6


def matches_set(record: MoleculeRecord, names: FrozenSet[str]) -> bool:
    """True if the record id is one of the names."""
    return record.id in names


def matches_map(record: MoleculeRecord, energies: Dict[str, float],
                tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """
    True if the record id is in the table and its energy is not more than
    ``tolerance`` above the target.

    The comparison is one-sided: any energy below the target is accepted.
    """
    target = energies.get(record.id)
    if target is None:
        return False
    return record.energy - target <= tolerance


def build_predicate(table: QueryTable,
                    tolerance: float = DEFAULT_TOLERANCE) -> Callable[[MoleculeRecord], bool]:
    """Bind the matching function for the table's shape."""
    if table.kind is QueryKind.NAMES:
        return partial(matches_set, names=table.names)
    return partial(matches_map, energies=table.energies, tolerance=tolerance)
