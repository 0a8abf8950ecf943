"""
Streaming reader for gzip-compressed mol2 files.

The reader reconstructs discrete molecule records from the decompressed
text stream without interpreting atoms or bonds. Only three kinds of
lines are inspected:

- "Name:" header lines, which set the record id
- "Total Energy:" header lines, which set the record energy
- "@<TRIPOS>" section markers, whose block lengths are declared by the
  counts line following the MOLECULE marker

Every consumed line is kept verbatim in the record payload so records can
be written back out unchanged.
"""

import gzip
import re
from typing import IO, Iterator, List, Optional

from .models import DEFAULT_ENERGY, MoleculeRecord


NAME_PATTERN = re.compile(r"#+ +Name: +")
ENERGY_PATTERN = re.compile(r"#+ +Total Energy: +")
SECTION_PATTERN = re.compile(r"^@<TRIPOS>")
MOLECULE_PATTERN = re.compile(r"^@<TRIPOS>MOLECULE")

# Decoding used for both reading and writing so payloads round-trip byte for byte
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"


class Mol2ParseError(ValueError):
    """Raised when a record header or section count cannot be parsed."""


class Mol2Reader:
    """
    Pull-based reader producing MoleculeRecord objects from one text stream.

    ``read_record()`` returns the next record, or None once the stream is
    exhausted; after that it keeps returning None. The reader is also an
    iterator and a context manager.

    A record ends after a section is consumed when the count declared for
    the following section is zero or missing. A stream that ends in the
    middle of a record yields nothing for that record.
    """

    def __init__(self, handle: IO[str], source: str = "<stream>"):
        """
        Initialize the reader.

        Args:
            handle: Text stream positioned at the start of mol2 content
            source: Name used in error messages
        """
        self.source = source
        self._handle = handle
        self._line = ""
        self._line_number = 0
        self._exhausted = False

    @classmethod
    def open(cls, filename: str) -> "Mol2Reader":
        """
        Open a gzip-compressed mol2 file.

        Concatenated gzip members are read as one continuous stream.

        Raises:
            OSError: If the file cannot be opened
        """
        handle = gzip.open(
            filename, "rt", encoding=TEXT_ENCODING, errors=TEXT_ERRORS, newline=""
        )
        return cls(handle, source=str(filename))

    def __enter__(self) -> "Mol2Reader":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __iter__(self) -> Iterator[MoleculeRecord]:
        return self

    def __next__(self) -> MoleculeRecord:
        record = self.read_record()
        if record is None:
            raise StopIteration
        return record

    def close(self) -> None:
        self._exhausted = True
        self._handle.close()

    def _step(self) -> bool:
        """Advance one physical line; False at end of stream."""
        self._line = self._handle.readline()
        if not self._line:
            self._exhausted = True
            return False
        self._line_number += 1
        return True

    def _error(self, message: str) -> Mol2ParseError:
        return Mol2ParseError(f"{self.source}, line {self._line_number}: {message}")

    def _parse_energy(self, line: str) -> float:
        value = ENERGY_PATTERN.sub("", line).strip()
        try:
            return float(value)
        except ValueError:
            raise self._error(f"malformed energy {value!r}")

    def _parse_counts(self, line: str) -> List[int]:
        counts = []
        for token in line.split():
            try:
                count = int(token)
            except ValueError:
                raise self._error(f"malformed section count {token!r}")
            if count < 0:
                raise self._error(f"negative section count {token!r}")
            counts.append(count)
        return counts

    def read_record(self) -> Optional[MoleculeRecord]:
        """
        Read the next record from the stream.

        Returns:
            Optional[MoleculeRecord]: The next record, or None at end of stream

        Raises:
            Mol2ParseError: If an energy or section count is malformed
        """
        if self._exhausted:
            return None

        name = ""
        energy = DEFAULT_ENERGY
        lines: List[str] = []
        counts: List[int] = []
        section_index = 0

        while True:
            if not self._step():
                return None
            line = self._line

            if NAME_PATTERN.search(line):
                name = NAME_PATTERN.sub("", line).strip()
            elif ENERGY_PATTERN.search(line):
                energy = self._parse_energy(line)
            elif SECTION_PATTERN.match(line):
                lines.append(line)

                if MOLECULE_PATTERN.match(line):
                    # molecule name line, then the counts line
                    for _ in range(2):
                        if not self._step():
                            return None
                        lines.append(self._line)
                    counts = self._parse_counts(self._line)
                else:
                    if section_index >= len(counts):
                        raise self._error(
                            f"section {line.strip()} has no declared line count"
                        )
                    for _ in range(counts[section_index]):
                        if not self._step():
                            return None
                        lines.append(self._line)
                    section_index += 1

                # A missing count past the declared list also ends the record
                if section_index > 0 and (
                    section_index >= len(counts) or counts[section_index] == 0
                ):
                    break
                continue

            lines.append(line)

        return MoleculeRecord(id=name, energy=energy, payload="".join(lines))


def iter_records(filename: str) -> Iterator[MoleculeRecord]:
    """Yield every record of a gzip-compressed mol2 file, closing it afterwards."""
    with Mol2Reader.open(filename) as reader:
        yield from reader
