"""
Parallel record pipeline.

Input files are parsed in parallel, one worker process per file at a time,
and their records are streamed to a single consumer in the calling process
which performs all output I/O.

Key principles:
1. One file is always parsed by exactly one worker, start to finish
2. Query table and settings are shipped once per worker process
3. Records travel in batches through one multi-producer queue
4. Per-file counters are returned as task results and summed at the end
5. The first worker failure aborts the whole run, including a worker
   process that dies without reporting
6. An ordered run releases records strictly in input file order
"""

import multiprocessing
import os
import time
from dataclasses import asdict, dataclass
from queue import Empty
from typing import Callable, Dict, List, Optional, Tuple

import pandas as pd
from tqdm import tqdm

from .config import Mol2GrepConfig
from .matching import build_predicate
from .models import FilterSummary, MoleculeRecord, PartitionSummary, QueryTable, TableSummary
from .query import load_query_table
from .reader import Mol2Reader
from .report import write_energy_report
from .utils import format_energy, open_gzip_writer, shard_filename


TABLE_COLUMNS = ["ligand_id", "name", "energy"]

# Message kinds sent from workers to the consumer
FILE_STARTED = "started"
RECORDS = "records"
FILE_DONE = "done"
FILE_FAILED = "failed"

# Seconds the consumer waits for a message before checking on the workers
POLL_INTERVAL = 1.0

# Per-process worker state, set by _init_worker
_queue = None
_predicate: Optional[Callable[[MoleculeRecord], bool]] = None
_batch_size = 1000


@dataclass
class FileResult:
    """Counters collected by one worker for one input file."""
    index: int
    path: str
    processed: int = 0
    accepted: int = 0
    processing_time: float = 0.0


def _init_worker(queue, table: Optional[QueryTable], tolerance: float, batch_size: int) -> None:
    global _queue, _predicate, _batch_size
    _queue = queue
    _predicate = build_predicate(table, tolerance) if table is not None else None
    _batch_size = batch_size


def process_file_worker(args: Tuple[int, str]) -> FileResult:
    """
    Parse one input file and stream its records to the consumer.

    Runs inside a pool worker. A start message carrying the worker's pid
    comes first. Every record is counted as processed; records passing the
    query predicate (or all records, when there is none) are sent in
    batches. A completion message follows the last batch, or a failure
    message before the exception propagates to the pool.

    Args:
        args: Tuple of (file index, file path)

    Returns:
        FileResult: Counters for this file
    """
    index, path = args
    start_time = time.time()
    result = FileResult(index=index, path=path)
    _queue.put((FILE_STARTED, index, os.getpid()))

    try:
        with Mol2Reader.open(path) as reader:
            batch = []
            for record in reader:
                result.processed += 1
                if _predicate is not None and not _predicate(record):
                    continue
                result.accepted += 1
                batch.append(record)
                if len(batch) >= _batch_size:
                    _queue.put((RECORDS, index, batch))
                    batch = []
            if batch:
                _queue.put((RECORDS, index, batch))
    except Exception:
        _queue.put((FILE_FAILED, index, None))
        raise

    result.processing_time = time.time() - start_time
    _queue.put((FILE_DONE, index, None))
    return result


class RecordPipeline:
    """
    Fan-out/fan-in driver for a set of input files.

    Workers from a bounded process pool parse the files and send records
    into one queue; ``run`` drains it in the calling process and hands every
    record to the sink, so output writing is single-threaded.
    """

    def __init__(self, input_files: List[str], config: Optional[Mol2GrepConfig] = None,
                 table: Optional[QueryTable] = None):
        """
        Initialize the pipeline.

        Args:
            input_files: Paths of gzip-compressed mol2 files
            config: Run configuration (defaults if omitted)
            table: Query table filtering records inside the workers (optional)
        """
        self.input_files = [str(path) for path in input_files]
        self.config = config or Mol2GrepConfig.default_config()
        self.table = table

    def run(self, sink: Callable[[MoleculeRecord], None], ordered: bool = False) -> List[FileResult]:
        """
        Process all input files and feed the records to ``sink``.

        Records from one file reach the sink in file order. Records from
        different files interleave in arrival order, unless ``ordered`` is
        set: then batches of a later file are held back until every earlier
        file has been fully delivered, so the sink sees the concatenation of
        the files in input order.

        Returns:
            List[FileResult]: Per-file counters, in input order

        Raises:
            Exception: The first exception raised by a worker or by the sink
        """
        if not self.input_files:
            return []

        n_proc = min(self.config.n_proc, len(self.input_files))
        queue = multiprocessing.Queue(self.config.queue_size)

        if self.config.verbose:
            print(f"Processing {len(self.input_files)} files with {n_proc} processes...")
            start_time = time.time()

        try:
            with multiprocessing.Pool(
                n_proc,
                initializer=_init_worker,
                initargs=(queue, self.table, self.config.tolerance, self.config.batch_size),
            ) as pool:
                pending = [
                    pool.apply_async(process_file_worker, ((index, path),))
                    for index, path in enumerate(self.input_files)
                ]
                self._drain(queue, pending, sink, ordered)
                results = [task.get() for task in pending]
        finally:
            queue.close()

        if self.config.verbose:
            total_time = time.time() - start_time
            print(f"Parallel processing completed in {total_time:.2f}s")
            stats = pd.DataFrame([asdict(result) for result in results])
            stats = stats.drop(columns="index").round({"processing_time": 2})
            print(stats.to_string(index=False))

        return results

    def _drain(self, queue, pending, sink: Callable[[MoleculeRecord], None],
               ordered: bool) -> None:
        remaining = len(pending)
        running: Dict[int, int] = {}
        finished = set()
        held: Dict[int, list] = {}
        next_index = 0

        with tqdm(total=remaining, desc="Processing files", unit="file",
                  disable=not self.config.progress) as progress_bar:
            while remaining:
                try:
                    kind, index, payload = queue.get(timeout=POLL_INTERVAL)
                except Empty:
                    self._check_workers(running, pending)
                    continue

                if kind == FILE_STARTED:
                    running[index] = payload
                elif kind == RECORDS:
                    if ordered and index != next_index:
                        held.setdefault(index, []).append(payload)
                    else:
                        for record in payload:
                            sink(record)
                elif kind == FILE_FAILED:
                    # Re-raises the worker's exception
                    pending[index].get()
                    raise RuntimeError(f"Worker failed on {self.input_files[index]}")
                else:
                    running.pop(index, None)
                    remaining -= 1
                    progress_bar.update(1)
                    if ordered:
                        finished.add(index)
                        while next_index in finished:
                            next_index += 1
                            for batch in held.pop(next_index, []):
                                for record in batch:
                                    sink(record)

    def _check_workers(self, running: Dict[int, int], pending) -> None:
        """Fail if a worker process died while it still owned a file."""
        alive = {process.pid for process in multiprocessing.active_children()}
        for index, pid in running.items():
            if pid not in alive and not pending[index].ready():
                raise RuntimeError(
                    f"Worker process {pid} exited while processing {self.input_files[index]}"
                )


def grep(input_files: List[str], query_filename: str,
         output_filename: str = "query_output.mol2.gz",
         config: Optional[Mol2GrepConfig] = None) -> FilterSummary:
    """
    Write the records accepted by a query table to one gzip mol2 file.

    Args:
        input_files: Paths of gzip-compressed mol2 files
        query_filename: Query file with 1 (ids) or 2 (ids, energies) columns
        output_filename: Path of the gzip-compressed output
        config: Run configuration; its tolerance applies to 2-column queries

    Returns:
        FilterSummary: Records processed and accepted
    """
    config = config or Mol2GrepConfig.default_config()
    query_table = load_query_table(query_filename)

    if config.verbose:
        energy_note = f" with energies (tolerance {config.tolerance})" if query_table.has_energy else ""
        print(f"Loaded {len(query_table)} query ids{energy_note}")

    pipeline = RecordPipeline(input_files, config, table=query_table)
    with open_gzip_writer(output_filename) as writer:
        results = pipeline.run(lambda record: writer.write(record.payload))

    summary = FilterSummary(
        processed=sum(result.processed for result in results),
        accepted=sum(result.accepted for result in results),
        output_file=str(output_filename),
    )

    print(f">>> Number of Molecules Processed: {summary.processed}")
    print(f">>> Number of Molecules Accepted: {summary.accepted}")
    return summary


class _ShardWriter:
    """Round-robin sink over pre-opened shard streams."""

    def __init__(self, writers):
        self.writers = writers
        self.counts = [0] * len(writers)
        self.num_molecules = 0

    def __call__(self, record: MoleculeRecord) -> None:
        file_id = self.num_molecules % len(self.writers)
        self.writers[file_id].write(record.payload)
        self.counts[file_id] += 1
        self.num_molecules += 1


def split(input_files: List[str], prefix: Optional[str] = None,
          num_files: Optional[int] = None,
          config: Optional[Mol2GrepConfig] = None) -> PartitionSummary:
    """
    Distribute all records round-robin across ``num_files`` gzip mol2 files.

    Shard assignment follows the order records reach the writer, so only the
    per-shard counts are reproducible when more than one process is used.

    Args:
        input_files: Paths of gzip-compressed mol2 files
        prefix: Output prefix; shards are named ``<prefix>.<NNNN>.mol2.gz``
        num_files: Number of shards
        config: Run configuration supplying defaults for prefix and num_files

    Returns:
        PartitionSummary: Record count and filename of every shard
    """
    config = config or Mol2GrepConfig.default_config()
    prefix = prefix if prefix is not None else config.prefix
    num_files = num_files if num_files is not None else config.num_files
    if num_files < 1:
        raise ValueError(f"num_files must be at least 1, got {num_files}")

    output_files = [shard_filename(prefix, i) for i in range(num_files)]
    writers = []
    try:
        for filename in output_files:
            writers.append(open_gzip_writer(filename))
        shard_writer = _ShardWriter(writers)
        RecordPipeline(input_files, config).run(shard_writer)
    finally:
        for writer in writers:
            writer.close()

    summary = PartitionSummary(counts=shard_writer.counts, output_files=output_files)

    print("\nFile Totals:")
    for filename, count in zip(summary.output_files, summary.counts):
        print(f"  {filename}:\t{count}")
    return summary


class _TableWriter:
    """
    Sink numbering records and writing them as tab-separated rows in chunks.

    Ids are written verbatim, with no quoting or escaping, and energies in
    their shortest positional form.
    """

    def __init__(self, handle, write_header: bool, chunk_size: int, keep_energies: bool):
        self.handle = handle
        self.chunk_size = chunk_size
        self.ligand_id = 0
        self.energies = [] if keep_energies else None
        self._rows: List[str] = []
        if write_header:
            self.handle.write("\t".join(TABLE_COLUMNS) + "\n")

    def __call__(self, record: MoleculeRecord) -> None:
        self._rows.append(f"{self.ligand_id}\t{record.id}\t{format_energy(record.energy)}\n")
        self.ligand_id += 1
        if self.energies is not None:
            self.energies.append(record.energy)
        if len(self._rows) >= self.chunk_size:
            self.flush()

    def flush(self) -> None:
        self.handle.writelines(self._rows)
        self._rows = []


def table(input_files: List[str], output_filename: str = "output.tab.gz",
          write_header: Optional[bool] = None, report_filename: Optional[str] = None,
          config: Optional[Mol2GrepConfig] = None) -> TableSummary:
    """
    Write one ``ligand_id, name, energy`` row per record to a gzip TSV file.

    ``ligand_id`` is a zero-based counter over the rows written. Rows follow
    the input files in order, and each file in record order, whatever the
    number of worker processes.

    Args:
        input_files: Paths of gzip-compressed mol2 files
        output_filename: Path of the gzip-compressed table
        write_header: Write the column header (defaults to config.write_header)
        report_filename: Also write a PDF energy report to this path (optional)
        config: Run configuration

    Returns:
        TableSummary: Number of rows written
    """
    config = config or Mol2GrepConfig.default_config()
    write_header = config.write_header if write_header is None else write_header

    with open_gzip_writer(output_filename) as handle:
        table_writer = _TableWriter(handle, write_header, config.batch_size,
                                    keep_energies=report_filename is not None)
        RecordPipeline(input_files, config).run(table_writer, ordered=True)
        table_writer.flush()

    summary = TableSummary(rows=table_writer.ligand_id, output_file=str(output_filename))

    print(f"\n Total Poses: {summary.rows}")
    print(f" Written to: {summary.output_file}")

    if report_filename is not None:
        if write_energy_report(table_writer.energies, report_filename,
                               title=f"Energy Report: {output_filename}"):
            summary.report_file = str(report_filename)

    return summary
