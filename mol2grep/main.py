"""
Command-line interface for mol2grep.

Subcommands:
- grep:   keep the records whose ids (and optionally energies) match a query file
- split:  distribute records round-robin across several output files
- table:  write a tab-separated table of record ids and energies
- config: write a default configuration file
"""

import os
import sys
import argparse
import time
from typing import List, Optional

from .config import Mol2GrepConfig, create_config_file
from .pipeline import grep, split, table
from .utils import read_input_list


def add_input_arguments(parser: argparse.ArgumentParser) -> None:
    """Arguments shared by the grep, split and table subcommands."""
    inputs = parser.add_mutually_exclusive_group(required=True)
    inputs.add_argument(
        "-i", "--input",
        nargs="+",
        metavar="MOL2_GZ",
        help="mol2.gz formatted files to process (can take multiple inputs)"
    )
    inputs.add_argument(
        "-f", "--files",
        metavar="LIST_TXT",
        help="A file listing the mol2.gz files to process"
    )
    parser.add_argument(
        "-t", "--threads",
        type=int,
        help="Number of parallel processes (default: 4)"
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        help="Records sent from a worker to the writer per message (default: 1000)"
    )
    parser.add_argument(
        "--queue-size",
        type=int,
        help="Capacity of the worker-to-writer queue, 0 for unbounded (default: 0)"
    )
    parser.add_argument(
        "--config",
        help="Path to configuration file (JSON format)"
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the progress bar"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose output"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mol2grep",
        description="Filter, split and tabulate gzip-compressed mol2 files in parallel."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    grep_parser = subparsers.add_parser(
        "grep",
        help="Return poses that match query ids and/or expected energies"
    )
    add_input_arguments(grep_parser)
    grep_parser.add_argument(
        "-q", "--query",
        required=True,
        help="Query table of ids, optionally with energies (whitespace separated, no header)"
    )
    grep_parser.add_argument(
        "-e", "--tol",
        type=float,
        help="Maximum energy excess over the query energy to accept (default: 1e-6)"
    )
    grep_parser.add_argument(
        "-o", "--out",
        default="query_output.mol2.gz",
        help="mol2.gz filename to write passing molecules to (default: query_output.mol2.gz)"
    )

    split_parser = subparsers.add_parser(
        "split",
        help="Split mol2 files into a given number of output files"
    )
    add_input_arguments(split_parser)
    split_parser.add_argument(
        "-o", "--prefix",
        help="Prefix of output files: <prefix>.<file_id>.mol2.gz (default: split)"
    )
    split_parser.add_argument(
        "-n", "--num_files",
        type=int,
        help="Number of files to split records into (default: 4)"
    )

    table_parser = subparsers.add_parser(
        "table",
        help="Convert mol2 files into a tab-separated table of names and energies"
    )
    add_input_arguments(table_parser)
    table_parser.add_argument(
        "-o", "--output",
        default="output.tab.gz",
        help="Output filename to write the table to (default: output.tab.gz)"
    )
    table_parser.add_argument(
        "-n", "--no_header",
        action="store_true",
        help="Do not include a header in the output file"
    )
    table_parser.add_argument(
        "--report",
        metavar="PDF",
        help="Also write a PDF energy report to this path"
    )

    config_parser = subparsers.add_parser(
        "config",
        help="Write a default configuration file"
    )
    config_parser.add_argument(
        "-o", "--output",
        default="mol2grep.json",
        help="Path of the configuration file to write (default: mol2grep.json)"
    )

    return parser


def validate_paths(args: argparse.Namespace, input_files: List[str]) -> bool:
    """
    Validate that all required paths exist.

    Args:
        args: Parsed command line arguments
        input_files: Resolved input mol2 files

    Returns:
        bool: True if all paths are valid
    """
    required_paths = [(path, "Input mol2 file") for path in input_files]
    if getattr(args, "query", None):
        required_paths.append((args.query, "Query file"))

    all_valid = True
    for path, description in required_paths:
        if not os.path.exists(path):
            print(f"Error: {description} not found: {path}")
            all_valid = False

    return all_valid


def setup_config(args: argparse.Namespace) -> Mol2GrepConfig:
    """
    Set up configuration: defaults, then the JSON file, then command line flags.

    Args:
        args: Parsed command line arguments

    Returns:
        Mol2GrepConfig: Configuration object
    """
    if args.config:
        config = Mol2GrepConfig.load_from_file(args.config)
        print(f"Loaded configuration from {args.config}")
    else:
        config = Mol2GrepConfig.default_config()

    overrides = {
        'n_proc': args.threads,
        'batch_size': args.batch_size,
        'queue_size': args.queue_size,
        'tolerance': getattr(args, "tol", None),
        'prefix': getattr(args, "prefix", None),
        'num_files': getattr(args, "num_files", None),
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(config, key, value)
    if getattr(args, "no_header", False):
        config.write_header = False
    if args.no_progress:
        config.progress = False
    if args.verbose:
        config.verbose = True

    config.validate()

    if config.verbose:
        print("\nConfiguration:")
        for key, value in config.to_dict().items():
            print(f"  {key}: {value}")

    return config


def resolve_input_files(args: argparse.Namespace) -> List[str]:
    """Input files given directly, or read from the --files list."""
    if args.input:
        return list(args.input)
    return read_input_list(args.files)


def run_command(args: argparse.Namespace) -> None:
    if args.command == "config":
        create_config_file(args.output)
        print(f"Created default configuration file: {args.output}")
        return

    input_files = resolve_input_files(args)
    if not input_files:
        raise ValueError("No input files given")
    if not validate_paths(args, input_files):
        sys.exit(1)

    config = setup_config(args)
    start_time = time.time()

    if args.command == "grep":
        grep(input_files, args.query, args.out, config=config)
    elif args.command == "split":
        split(input_files, config=config)
    elif args.command == "table":
        table(input_files, args.output, report_filename=args.report, config=config)

    if config.verbose:
        print(f"Done! (total: {time.time() - start_time:.2f}s)")


def main(argv: Optional[List[str]] = None) -> None:
    """Main execution function."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        run_command(args)
    except Exception as e:
        print(f"Error: {e}")
        if getattr(args, "verbose", False):
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
