"""
TIRP and metadata record writers.

TIRP line (8 tab-separated columns, no header):
    cell#NNNNNN  1  1  R1  R2  Q1  Q2  <single space>

Metadata line (5 tab-separated columns, no header):
    cell#NNNNNN  strain  copy_number  replicon  num_reads

Write errors are not caught here; a failed write ends the run.
"""

import gzip
from pathlib import Path
from typing import List, Optional, TextIO, Union

from .models import CopyNumberRecord, ReadPair, format_cell_id

CHROMREF_SUFFIX = "_chromref"

METADATA_COLUMNS = ["cellID", "strain", "copyNumber", "contigName", "readCount"]


def format_tirp_line(cell_id: int, pair: ReadPair, phred: str) -> str:
    return f"{format_cell_id(cell_id)}\t1\t1\t{pair.r1}\t{pair.r2}\t{phred}\t{phred}\t \n"


def format_chromref_line(cell_id: int, sequence: str) -> str:
    """Full chromosome as one pseudo read pair with empty R2 and qualities."""
    return f"{format_cell_id(cell_id)}{CHROMREF_SUFFIX}\t1\t1\t{sequence}\t\t\t\t \n"


def format_metadata_line(cell_id: int, strain_name: str, record: CopyNumberRecord) -> str:
    return (
        f"{format_cell_id(cell_id)}\t{strain_name}\t{record.copy_number}\t"
        f"{record.replicon_name}\t{record.num_reads}\n"
    )


class RecordWriter:
    """Line writer over a truncate-on-open text file (optionally gzip)."""

    def __init__(self, output_path: Union[str, Path], compress: bool = False):
        self.output_path = Path(output_path)
        self.compress = compress
        self._file: Optional[TextIO] = None
        self.lines_written = 0

    def open(self):
        if self.compress:
            self._file = gzip.open(self.output_path, 'wt', encoding='utf-8')
        else:
            self._file = open(self.output_path, 'w', encoding='utf-8', newline='')
        return self

    def close(self):
        if self._file:
            self._file.close()
            self._file = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def write_line(self, line: str):
        if self._file is None:
            raise RuntimeError("Writer not opened")
        self._file.write(line)
        self.lines_written += 1

    def write_block(self, text: str, n_lines: int):
        """Append pre-rendered lines (used when cells are rendered elsewhere)."""
        if self._file is None:
            raise RuntimeError("Writer not opened")
        self._file.write(text)
        self.lines_written += n_lines


class TirpWriter(RecordWriter):
    """Writes read pairs in TIRP format"""

    def __init__(
        self,
        output_path: Union[str, Path],
        phred: str,
        compress: bool = False
    ):
        super().__init__(output_path, compress)
        self.phred = phred

    def write_pair(self, cell_id: int, pair: ReadPair):
        self.write_line(format_tirp_line(cell_id, pair, self.phred))

    def write_chromref(self, cell_id: int, sequence: str):
        self.write_line(format_chromref_line(cell_id, sequence))


class MetadataWriter(RecordWriter):
    """Writes one summary line per (cell, replicon)"""

    def write_record(self, cell_id: int, strain_name: str, record: CopyNumberRecord):
        self.write_line(format_metadata_line(cell_id, strain_name, record))


class BufferedCellSink:
    """
    In-memory stand-in for the TIRP/metadata writer pair.

    Collects one cell's lines so they can be rendered in a worker process
    and appended to the real files in cell order.
    """

    def __init__(self, phred: str):
        self.phred = phred
        self.tirp_lines: List[str] = []
        self.metadata_lines: List[str] = []

    def write_pair(self, cell_id: int, pair: ReadPair):
        self.tirp_lines.append(format_tirp_line(cell_id, pair, self.phred))

    def write_chromref(self, cell_id: int, sequence: str):
        self.tirp_lines.append(format_chromref_line(cell_id, sequence))

    def write_record(self, cell_id: int, strain_name: str, record: CopyNumberRecord):
        self.metadata_lines.append(format_metadata_line(cell_id, strain_name, record))
