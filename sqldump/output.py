"""
Output sinks for SQL Dump.

A sink accepts chunks of dump text in the order they are generated and
reports whether each write succeeded.
"""

import gzip
import io
import logging
from pathlib import Path
from typing import Optional, TextIO


class OutputSink:
    """Base class for dump output destinations."""

    def write(self, text: str) -> bool:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self) -> "OutputSink":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class BufferOutputSink(OutputSink):
    """Collects the dump in memory."""

    def __init__(self):
        self._buffer = io.StringIO()

    def write(self, text: str) -> bool:
        self._buffer.write(text)
        return True

    def getvalue(self) -> str:
        return self._buffer.getvalue()


class FileOutputSink(OutputSink):
    """Writes the dump to a file, optionally gzip compressed."""

    def __init__(self, output_path: Path, compress: bool = False, append: bool = False):
        self.compress = compress
        self.append = append
        self.path = Path(str(output_path) + '.gz') if compress else Path(output_path)
        self.bytes_written = 0
        self._handle: Optional[TextIO] = None

    def open(self) -> None:
        """Open output file with optional compression."""
        file_mode = 'at' if self.append else 'wt'

        if self.compress:
            self._handle = gzip.open(self.path, file_mode, encoding='utf-8')
        else:
            self._handle = open(self.path, file_mode[0], encoding='utf-8')
        logging.debug(f"Opened output file {self.path}")

    def __enter__(self) -> "FileOutputSink":
        self.open()
        return self

    def write(self, text: str) -> bool:
        if self._handle is None:
            logging.error(f"Output file {self.path} is not open")
            return False
        try:
            self._handle.write(text)
        except OSError as e:
            logging.error(f"Failed writing to {self.path}: {e}")
            return False
        self.bytes_written += len(text)
        return True

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
