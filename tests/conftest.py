import gzip
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

import pytest


FILE_SIZES = [451, 1300, 1300, 1300, 1300, 1321]
TOTAL_RECORDS = sum(FILE_SIZES)

# Global record indices picked for the query files
QUERY_INDICES = [0, 5, 451, 900, 1751, 2500, 3051, 4000, 5651, 6971]
# Of those, the ones whose query energy sits 1.0 below the record energy
REJECTED_BY_ENERGY = [900, 4000]


def record_name(index: int) -> str:
    return f"ZINC{index:012d}"


def record_energy(index: int) -> float:
    return round(-10.0 - (index % 97) * 0.37, 2)


def make_record(name: str, energy: float = None, num_atoms: int = 2,
                counts: str = None) -> str:
    """Text of one DOCK-style mol2 record; energy None omits the header."""
    lines = [
        f"##########                 Name:                {name}\n",
        "##########            Long Name:                decoy pose\n",
    ]
    if energy is not None:
        lines.append(f"##########         Total Energy:               {energy:.2f}\n")
    lines += [
        "##########      Number Rotatable Bonds:                    1\n",
        "\n",
        "@<TRIPOS>MOLECULE\n",
        f"{name} none\n",
        counts if counts is not None else f"    {num_atoms}     {num_atoms - 1}     1     0     0\n",
        "SMALL\n",
        "USER_CHARGES\n",
        "\n",
        "@<TRIPOS>ATOM\n",
    ]
    for atom in range(1, num_atoms + 1):
        lines.append(
            f"      {atom} C{atom}         {atom * 0.5:8.4f}  {atom * -0.25:8.4f}"
            f"    0.0000 C.3       1 LIG1        0.0000\n"
        )
    lines.append("@<TRIPOS>BOND\n")
    for bond in range(1, num_atoms):
        lines.append(f"     {bond}    {bond}    {bond + 1} 1\n")
    lines += [
        "@<TRIPOS>SUBSTRUCTURE\n",
        "     1 LIG1        1 RESIDUE           1 A     LIG     0 ROOT\n",
    ]
    return "".join(lines)


def write_gz(path: Path, text: str, members: int = 1) -> Path:
    """Write text gzip-compressed, optionally as several concatenated members."""
    data = text.encode("utf-8")
    if members <= 1:
        path.write_bytes(gzip.compress(data))
        return path
    step = len(data) // members + 1
    chunks = [data[i:i + step] for i in range(0, len(data), step)]
    path.write_bytes(b"".join(gzip.compress(chunk) for chunk in chunks))
    return path


@dataclass
class Mol2Dataset:
    files: List[str] = field(default_factory=list)
    texts: List[str] = field(default_factory=list)
    energies: Dict[str, float] = field(default_factory=dict)
    names_per_file: List[List[str]] = field(default_factory=list)
    id_query: str = ""
    energy_query: str = ""
    input_list: str = ""


@pytest.fixture(scope="session")
def dataset(tmp_path_factory) -> Mol2Dataset:
    root = tmp_path_factory.mktemp("mol2")
    data = Mol2Dataset()

    index = 0
    for file_index, size in enumerate(FILE_SIZES):
        blocks = []
        names = []
        for _ in range(size):
            name = record_name(index)
            energy = record_energy(index)
            blocks.append(make_record(name, energy, num_atoms=2 + index % 4))
            names.append(name)
            data.energies[name] = energy
            index += 1
        text = "".join(blocks)
        # The second file is stored as a multi-member gzip stream
        members = 3 if file_index == 1 else 1
        path = write_gz(root / f"test{file_index:04d}.mol2.gz", text, members=members)
        data.files.append(str(path))
        data.texts.append(text)
        data.names_per_file.append(names)

    id_query = root / "zinc_list.txt"
    id_query.write_text(
        "\n".join(record_name(i) for i in QUERY_INDICES) + "\n\n" + record_name(0) + "\n"
    )
    data.id_query = str(id_query)

    rows = []
    for i in QUERY_INDICES:
        target = record_energy(i)
        if i in REJECTED_BY_ENERGY:
            target -= 1.0
        rows.append(f"{record_name(i)}\t{target:.2f}")
    energy_query = root / "zinc_list.tsv"
    energy_query.write_text("\n".join(rows) + "\n")
    data.energy_query = str(energy_query)

    input_list = root / "input_list.txt"
    input_list.write_text("\n".join(data.files) + "\n")
    data.input_list = str(input_list)

    return data


@pytest.fixture
def fast_config():
    from mol2grep.config import Mol2GrepConfig

    return Mol2GrepConfig(n_proc=2, batch_size=64, progress=False)


@pytest.fixture
def mol2_record():
    return make_record


@pytest.fixture
def gz_writer():
    return write_gz
