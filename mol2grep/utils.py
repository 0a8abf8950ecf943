"""
File helpers for mol2grep.

Gzip output streams, input path lists, shard naming and table value
formatting.
"""

import gzip
import math
from pathlib import Path
from typing import IO, List

import numpy as np

from .reader import TEXT_ENCODING, TEXT_ERRORS


def open_gzip_writer(filename: str) -> IO[str]:
    """
    Open a gzip-compressed text stream for writing.

    Uses the same decoding settings as the reader so record payloads are
    written back byte for byte.

    Args:
        filename: Path of the output file; parent directories are created
    """
    filepath = Path(filename)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    return gzip.open(filepath, "wt", encoding=TEXT_ENCODING, errors=TEXT_ERRORS, newline="")


def read_input_list(filename: str) -> List[str]:
    """
    Read a list of input paths separated by whitespace.

    Raises:
        FileNotFoundError: If the list file doesn't exist
    """
    with open(filename, "r", encoding="utf-8") as f:
        return f.read().split()


def shard_filename(prefix: str, index: int) -> str:
    """Name of shard ``index`` written by split: ``<prefix>.<NNNN>.mol2.gz``."""
    return f"{prefix}.{index:04d}.mol2.gz"


def format_energy(value: float) -> str:
    """
    Shortest positional text that reads back as ``value``.

    No exponent and no trailing ``.0``: -10.0 gives "-10", 1e-07 gives
    "0.0000001".
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return np.format_float_positional(value, unique=True, trim="-")
