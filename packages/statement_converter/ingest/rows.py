"""Decode a bank export into rows of text cells.

Tokenization uses the stdlib :mod:`csv` reader (RFC 4180 quoting, embedded
newlines, doubled quotes). No column semantics are applied here; the
normalizer interprets cells through a mapping descriptor.

Failure mode
------------
Any failure to turn the input into rows (undecodable bytes, ``csv.Error``,
an input with no rows at all) raises :class:`StatementDecodeError`. This is
the only error that aborts a whole conversion.
"""

from __future__ import annotations

import csv
from collections.abc import Sequence
from io import StringIO
from os import PathLike
from pathlib import Path

from ..logging_setup import get_logger

_logger = get_logger("statement_converter.ingest")


class StatementDecodeError(ValueError):
    """The input could not be tokenized into rows."""


def read_rows(csv_text: str, *, delimiter: str = ",") -> list[list[str]]:
    """Tokenize CSV text into a list of rows (each a list of cells)."""

    try:
        with StringIO(csv_text, newline="") as f:
            rows = [list(r) for r in csv.reader(f, delimiter=delimiter, strict=True)]
    except csv.Error as e:
        raise StatementDecodeError(f"Failed to parse CSV: {e}") from e
    if not rows:
        raise StatementDecodeError("CSV input contains no rows")
    _logger.debug("ingest:rows_read rows=%d", len(rows))
    return rows


def load_rows(
    csv_path: str | PathLike[str], *, encoding: str = "utf-8-sig", delimiter: str = ","
) -> list[list[str]]:
    """Read a CSV file from disk and tokenize it.

    ``utf-8-sig`` tolerates the byte-order mark that spreadsheet exports often
    prepend. ``OSError`` (missing file, permissions) propagates unchanged so
    callers can report it distinctly from decode failures.
    """

    p = Path(csv_path)
    data = p.read_bytes()
    try:
        text = data.decode(encoding)
    except UnicodeDecodeError as e:
        raise StatementDecodeError(f"Failed to decode {p.name} as {encoding}: {e}") from e
    return read_rows(text, delimiter=delimiter)


def rows_to_csv(rows: Sequence[Sequence[str]]) -> str:
    """Serialize rows back to CSV text (used to build detection samples)."""

    buf = StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerows(rows)
    return buf.getvalue()


__all__ = ["StatementDecodeError", "load_rows", "read_rows", "rows_to_csv"]
