"""
Configuration management for mol2grep.

This module handles loading, validation and creation of configuration
files for the grep, split and table operations.
"""

import json
import math
from dataclasses import dataclass, asdict
from typing import Dict, Any
from pathlib import Path

from .matching import DEFAULT_TOLERANCE


@dataclass
class Mol2GrepConfig:
    """
    Configuration for a mol2grep run.

    Attributes:
        tolerance: Maximum excess of a record's energy over its query target
        n_proc: Number of worker processes parsing input files
        batch_size: Records sent from a worker to the writer per message
        queue_size: Capacity of the worker-to-writer channel (0 = unbounded)
        num_files: Number of shards written by split
        prefix: Filename prefix of the shards written by split
        write_header: Write the column header in table output
        progress: Show a progress bar over input files
        verbose: Print per-file statistics
    """

    # Matching
    tolerance: float = DEFAULT_TOLERANCE

    # Parallel processing
    n_proc: int = 4
    batch_size: int = 1000
    queue_size: int = 0

    # Outputs
    num_files: int = 4
    prefix: str = "split"
    write_header: bool = True

    # Reporting
    progress: bool = True
    verbose: bool = False

    def __post_init__(self):
        """Validate parameters after initialization."""
        self.validate()

    def validate(self) -> None:
        """Validate that all parameters are within acceptable ranges."""
        if math.isnan(self.tolerance):
            raise ValueError("tolerance must be a number, got NaN")

        if self.n_proc < 1:
            raise ValueError(f"n_proc must be at least 1, got {self.n_proc}")

        if self.batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {self.batch_size}")

        if self.queue_size < 0:
            raise ValueError(f"queue_size must be 0 (unbounded) or positive, got {self.queue_size}")

        if self.num_files < 1:
            raise ValueError(f"num_files must be at least 1, got {self.num_files}")

        if not self.prefix:
            raise ValueError("prefix must be a non-empty string")

    def to_dict(self) -> Dict[str, Any]:
        """Settings keyed by their JSON names (``Threads``, ``Prefix``, ...)."""
        return {KEY_MAPPING[name]: value for name, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Mol2GrepConfig":
        """
        Build a configuration from JSON-named settings.

        Unknown names are ignored and absent ones fall back to the dataclass
        defaults. The result is validated like any other instance.
        """
        kwargs = {FIELD_NAMES[key]: value for key, value in data.items() if key in FIELD_NAMES}
        return cls(**kwargs)

    def save_to_file(self, filename: str = "mol2grep.json") -> None:
        """Write the settings as an indented JSON object, creating parent directories."""
        filepath = Path(filename)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=4)

    @classmethod
    def load_from_file(cls, filename: str = "mol2grep.json") -> "Mol2GrepConfig":
        """
        Read settings written by ``save_to_file`` or edited by hand.

        Raises:
            FileNotFoundError: No file at ``filename``
            ValueError: The file is not a JSON object, or a setting is out of range
        """
        filepath = Path(filename)
        if not filepath.exists():
            raise FileNotFoundError(f"Configuration file not found: {filename}")

        try:
            with open(filepath, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Configuration file must hold a JSON object: {filename}")
        return cls.from_dict(data)

    @classmethod
    def default_config(cls) -> "Mol2GrepConfig":
        return cls()


# Dataclass field -> JSON key
KEY_MAPPING = {
    'tolerance': 'Tolerance',
    'n_proc': 'Threads',
    'batch_size': 'Batch_size',
    'queue_size': 'Queue_size',
    'num_files': 'Num_files',
    'prefix': 'Prefix',
    'write_header': 'Header',
    'progress': 'Progress',
    'verbose': 'Verbose'
}
FIELD_NAMES = {key: name for name, key in KEY_MAPPING.items()}


def create_config_file(output_path: str = "mol2grep.json") -> Mol2GrepConfig:
    """Write the default settings to ``output_path`` and return them."""
    config = Mol2GrepConfig.default_config()
    config.save_to_file(output_path)
    return config
