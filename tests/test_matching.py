import numpy as np
import pytest

from mol2grep.matching import DEFAULT_TOLERANCE, build_predicate, matches_map, matches_set
from mol2grep.models import MoleculeRecord, QueryTable


TARGET = -10.0
TOLERANCE = 0.5


def _record(name: str, energy: float) -> MoleculeRecord:
    return MoleculeRecord(id=name, energy=energy, payload="")


def test_matches_set_is_membership():
    names = frozenset({"ZINC1", "ZINC2"})
    assert matches_set(_record("ZINC1", 0.0), names)
    assert not matches_set(_record("ZINC3", 0.0), names)


def test_matches_map_requires_membership():
    assert not matches_map(_record("ZINC2", TARGET), {"ZINC1": TARGET}, TOLERANCE)


def test_energy_at_tolerance_boundary_passes():
    assert matches_map(_record("ZINC1", TARGET + TOLERANCE), {"ZINC1": TARGET}, TOLERANCE)


@pytest.mark.parametrize("epsilon", [2.0 ** -10, 2.0 ** -5, 0.25, 1.0])
def test_energy_above_tolerance_fails(epsilon):
    record = _record("ZINC1", TARGET + TOLERANCE + epsilon)
    assert not matches_map(record, {"ZINC1": TARGET}, TOLERANCE)


def test_energies_below_target_always_pass():
    energies = TARGET - np.array([0.0, 0.25, 1.0, 100.0, 1e6])
    for energy in energies:
        assert matches_map(_record("ZINC1", float(energy)), {"ZINC1": TARGET}, TOLERANCE)


def test_default_tolerance_accepts_equal_energy_only_from_above():
    energies = {"ZINC1": TARGET}
    assert matches_map(_record("ZINC1", TARGET), energies)
    assert not matches_map(_record("ZINC1", TARGET + 10 * DEFAULT_TOLERANCE), energies)


def test_build_predicate_dispatches_on_table_kind():
    names = build_predicate(QueryTable.from_names(["ZINC1"]))
    energies = build_predicate(QueryTable.from_energies({"ZINC1": TARGET}), tolerance=TOLERANCE)

    assert names(_record("ZINC1", 1e9))
    assert not names(_record("ZINC2", TARGET))
    assert energies(_record("ZINC1", TARGET + TOLERANCE))
    assert not energies(_record("ZINC1", TARGET + 2 * TOLERANCE))
