"""Public conversion API for the ``statement_converter`` package.

Orchestrates the pipeline
``rows -> mapping resolution -> normalize -> render`` and returns a
:class:`ConversionResult`. Each stage lives in its own module; this module
only wires them together.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from os import PathLike
from pathlib import Path

from .detection import MappingDetector, resolve_mapping
from .ingest.rows import load_rows, read_rows
from .logging_setup import get_logger
from .models import AccountDetails, MappingDescriptor
from .normalizers import normalize_transactions
from .records import Transaction
from .rendering import render_statement, statement_filename

_logger = get_logger("statement_converter.api")


@dataclass(frozen=True, slots=True)
class ConversionResult:
    """Outcome of a conversion: records, rendered text, and target file name."""

    transactions: tuple[Transaction, ...]
    text: str
    filename: str
    mapping: MappingDescriptor
    used_fallback: bool = False


def convert_statement(
    rows: Sequence[Sequence[str]],
    mapping: MappingDescriptor,
    account: AccountDetails,
    *,
    used_fallback: bool = False,
) -> ConversionResult:
    """Normalize ``rows`` with ``mapping`` and render them for ``account``."""

    transactions = tuple(normalize_transactions(rows, mapping))
    return ConversionResult(
        transactions=transactions,
        text=render_statement(transactions, account),
        filename=statement_filename(account),
        mapping=mapping,
        used_fallback=used_fallback,
    )


def _resolve(
    rows: Sequence[Sequence[str]],
    mapping: MappingDescriptor | None,
    detector: MappingDetector | None,
    date_format: str | None,
) -> tuple[MappingDescriptor, bool]:
    used_fallback = False
    if mapping is None:
        mapping, used_fallback = resolve_mapping(rows, detector)
    if date_format:
        mapping = mapping.with_date_format(date_format)
    return mapping, used_fallback


def convert_csv(
    csv_text: str,
    account: AccountDetails,
    *,
    mapping: MappingDescriptor | None = None,
    detector: MappingDetector | None = None,
    date_format: str | None = None,
) -> ConversionResult:
    """Convert CSV text end to end.

    When ``mapping`` is ``None`` the mapping is resolved through ``detector``
    (falling back to the deterministic default). ``date_format`` overrides the
    resolved mapping's date pattern. Raises
    :class:`~statement_converter.ingest.rows.StatementDecodeError` when the
    text cannot be tokenized; no partial output is produced in that case.
    """

    rows = read_rows(csv_text)
    mapping, used_fallback = _resolve(rows, mapping, detector, date_format)
    return convert_statement(rows, mapping, account, used_fallback=used_fallback)


def convert_csv_file(
    csv_path: str | PathLike[str],
    account: AccountDetails,
    *,
    mapping: MappingDescriptor | None = None,
    detector: MappingDetector | None = None,
    date_format: str | None = None,
) -> ConversionResult:
    """Same as :func:`convert_csv` but reads the export from ``csv_path``."""

    rows = load_rows(csv_path)
    mapping, used_fallback = _resolve(rows, mapping, detector, date_format)
    return convert_statement(rows, mapping, account, used_fallback=used_fallback)


def write_statement(result: ConversionResult, output_dir: str | PathLike[str]) -> Path:
    """Write the rendered statement under its conventional file name."""

    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    target = out_dir / result.filename
    # newline="" keeps the renderer's \r\n line endings byte-for-byte.
    with target.open("w", encoding="utf-8", newline="") as f:
        f.write(result.text)
    _logger.info("api:statement_written path=%s transactions=%d", target, len(result.transactions))
    return target


__all__ = [
    "ConversionResult",
    "convert_csv",
    "convert_csv_file",
    "convert_statement",
    "write_statement",
]
