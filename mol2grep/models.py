"""
Data models for mol2grep.

This module defines the data structures shared by the reader, the query
loader and the processing pipeline: the MoleculeRecord value type, the
two-shaped QueryTable and the summaries returned by each operation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List


# Energy assigned to a record whose header carries no "Total Energy" line
DEFAULT_ENERGY = 100.0


@dataclass(frozen=True, eq=False)
class MoleculeRecord:
    """
    One molecule entry reconstructed from a mol2 formatted stream.

    Two records are equal, and hash identically, when their ids are equal;
    the energy and the raw payload take no part in identity.

    Attributes:
        id: Name parsed from the "Name:" header line (empty if absent)
        energy: Score parsed from the "Total Energy:" header line
        payload: Verbatim text of every line consumed for this record
    """
    id: str = ""
    energy: float = DEFAULT_ENERGY
    payload: str = ""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MoleculeRecord):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"MoleculeRecord(id={self.id!r}, energy={self.energy!r})"


class QueryKind(str, Enum):
    NAMES = "names"
    NAMES_WITH_ENERGY = "names_with_energy"


@dataclass(frozen=True)
class QueryTable:
    """
    Lookup table of accepted record ids.

    Exactly one shape is active: a plain set of names (``QueryKind.NAMES``)
    or a mapping of name to target energy (``QueryKind.NAMES_WITH_ENERGY``).
    """
    kind: QueryKind
    names: FrozenSet[str] = frozenset()
    energies: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_names(cls, names) -> "QueryTable":
        return cls(kind=QueryKind.NAMES, names=frozenset(names))

    @classmethod
    def from_energies(cls, energies: Dict[str, float]) -> "QueryTable":
        return cls(kind=QueryKind.NAMES_WITH_ENERGY, energies=dict(energies))

    @property
    def has_energy(self) -> bool:
        return self.kind is QueryKind.NAMES_WITH_ENERGY

    def __len__(self) -> int:
        if self.has_energy:
            return len(self.energies)
        return len(self.names)


@dataclass
class FilterSummary:
    """Totals reported by the grep operation."""
    processed: int = 0
    accepted: int = 0
    output_file: str = ""


@dataclass
class PartitionSummary:
    """Per-shard record counts reported by the split operation."""
    counts: List[int] = field(default_factory=list)
    output_files: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.counts)


@dataclass
class TableSummary:
    """Row count reported by the table operation."""
    rows: int = 0
    output_file: str = ""
    report_file: str = ""
