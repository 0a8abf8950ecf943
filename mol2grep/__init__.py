"""
mol2grep

Parallel filtering, splitting and tabulation of gzip-compressed mol2 files.

This package provides tools for:
- Reading discrete molecule records from (multi-member) gzip mol2 streams
- Loading query tables of accepted ids, optionally with target energies
- Filtering, round-robin splitting and tabulating records across many
  files in parallel, with byte-identical record payloads in the outputs

Main modules:
- config: Configuration management
- models: Data structures and models
- reader: Streaming mol2 record reader
- query: Query table loading
- matching: Record acceptance predicates
- pipeline: Parallel processing and the grep/split/table operations
- report: PDF energy report for table output
- main: Command-line interface
"""

from .config import Mol2GrepConfig, create_config_file
from .matching import DEFAULT_TOLERANCE, build_predicate, matches_map, matches_set
from .models import DEFAULT_ENERGY, MoleculeRecord, QueryKind, QueryTable
from .pipeline import RecordPipeline, grep, split, table
from .query import QueryFormatError, load_query_table
from .reader import Mol2ParseError, Mol2Reader
from .utils import read_input_list

__version__ = "0.1.0"

__all__ = [
    "Mol2GrepConfig",
    "create_config_file",
    "DEFAULT_TOLERANCE",
    "build_predicate",
    "matches_map",
    "matches_set",
    "DEFAULT_ENERGY",
    "MoleculeRecord",
    "QueryKind",
    "QueryTable",
    "RecordPipeline",
    "grep",
    "split",
    "table",
    "QueryFormatError",
    "load_query_table",
    "Mol2ParseError",
    "Mol2Reader",
    "read_input_list",
]
