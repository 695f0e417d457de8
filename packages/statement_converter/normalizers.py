"""Raw statement rows -> canonical :class:`~statement_converter.records.Transaction` rows.

The normalizer walks the decoded rows once, in order, starting after the
header row named by the :class:`~statement_converter.models.MappingDescriptor`.
Parsing of dates and amounts is explicit and fallible: helpers return ``None``
for unparsable input and the caller decides whether the field degrades to raw
text (dates, balances) or to an empty value (debit/credit).

A row never aborts the batch. Blank rows are dropped silently, rows without a
date are dropped with a debug diagnostic, and any unexpected exception while
extracting a row is logged with the row index and content before moving on.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Context, Decimal
from functools import lru_cache

from .logging_setup import get_logger
from .models import ABSENT, MappingDescriptor
from .records import CHEQUE_PLACEHOLDER, SOL_ID, Transaction

type RawRow = Sequence[str | None] | None

CANONICAL_DATE_FORMAT: str = "%d-%m-%Y"

DEBIT_TYPE_MARKERS: frozenset[str] = frozenset({"DR", "DEBIT", "WITHDRAWAL"})

_logger = get_logger("statement_converter.normalize")

# ---------------------------------------------------------------------------
# Helpers (date patterns, amounts, cell access)
# ---------------------------------------------------------------------------

# date-fns style tokens -> strptime directives. Longest tokens first so that
# ``MMMM`` wins over ``MM``.
_DATE_TOKENS: tuple[tuple[str, str], ...] = (
    ("yyyy", "%Y"),
    ("uuuu", "%Y"),
    ("yy", "%y"),
    ("y", "%Y"),
    ("MMMM", "%B"),
    ("MMM", "%b"),
    ("MM", "%m"),
    ("M", "%m"),
    ("dd", "%d"),
    ("d", "%d"),
    ("EEEE", "%A"),
    ("EEE", "%a"),
    ("HH", "%H"),
    ("H", "%H"),
    ("hh", "%I"),
    ("h", "%I"),
    ("mm", "%M"),
    ("m", "%M"),
    ("ss", "%S"),
    ("s", "%S"),
    ("a", "%p"),
)

_QUOTED_LITERAL_RE = re.compile(r"'([^']*)'")

# Plain signed decimal; no exponent, underscores, NaN or Infinity.
_AMOUNT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)")


@lru_cache(maxsize=64)
def to_strptime_pattern(pattern: str) -> str | None:
    """Translate a date-fns token pattern (``dd/MM/yyyy``) to a strptime format.

    Returns ``None`` when the pattern contains a letter token with no strptime
    equivalent (e.g. ordinals like ``do``). Text wrapped in single quotes is
    copied literally.
    """

    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "'":
            m = _QUOTED_LITERAL_RE.match(pattern, i)
            if m is None:
                return None
            out.append(m.group(1).replace("%", "%%"))
            i = m.end()
            continue
        if ch.isalpha():
            for token, directive in _DATE_TOKENS:
                if pattern.startswith(token, i):
                    # A token must consume the whole run of the same letter.
                    end = i + len(token)
                    if end < n and pattern[end] == ch:
                        continue
                    out.append(directive)
                    i = end
                    break
            else:
                return None
            continue
        out.append("%%" if ch == "%" else ch)
        i += 1
    return "".join(out)


def parse_date(text: str, pattern: str) -> date | None:
    """Parse ``text`` with a date-fns style ``pattern``; ``None`` when it fails."""

    if not text or not pattern:
        return None
    fmt = to_strptime_pattern(pattern)
    if fmt is None:
        return None
    try:
        return datetime.strptime(text, fmt).date()
    except ValueError:
        return None


def parse_amount(text: str) -> Decimal | None:
    """Parse a decimal amount after stripping thousands separators.

    Only plain signed decimals are accepted (``-1234.50``, ``.5``). Returns
    ``None`` for empty or malformed values, including exponents, underscore
    digit groups, ``NaN`` and ``Infinity``.
    """

    s = text.replace(",", "").strip()
    if not _AMOUNT_RE.fullmatch(s):
        return None
    return Decimal(s)


def format_amount(d: Decimal) -> str:
    # Exactly two decimals; ASCII dot; never scientific notation.
    # Precision grows with the integer part so long values never trap.
    ctx = Context(prec=max(28, d.adjusted() + 3))
    q = d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP, context=ctx)
    return f"{q:.2f}"


def _cell(row: Sequence[str | None], index: int) -> str:
    """Return the trimmed cell at ``index`` or ``""`` when absent/out of range."""

    if index < 0 or index >= len(row):
        return ""
    value = row[index]
    if value is None:
        return ""
    return str(value).strip()


def _is_blank(row: RawRow) -> bool:
    if not row:
        return True
    return all(v is None or str(v).strip() == "" for v in row)


# ---------------------------------------------------------------------------
# Field extraction
# ---------------------------------------------------------------------------


def _normalize_date(raw: str, pattern: str, *, row_index: int) -> str:
    if not pattern:
        return raw
    parsed = parse_date(raw, pattern)
    if parsed is None:
        _logger.warning(
            "normalize:date_unparsed row=%d value=%r date_format=%r", row_index, raw, pattern
        )
        return raw
    return parsed.strftime(CANONICAL_DATE_FORMAT)


def _dual_column_amounts(row: Sequence[str | None], mapping: MappingDescriptor) -> tuple[str, str]:
    dr = cr = ""
    parsed_dr = parse_amount(_cell(row, mapping.debit_column_index))
    parsed_cr = parse_amount(_cell(row, mapping.credit_column_index))
    # Zero is treated the same as an absent cell.
    if parsed_dr is not None and parsed_dr > 0:
        dr = format_amount(parsed_dr)
    if parsed_cr is not None and parsed_cr > 0:
        cr = format_amount(parsed_cr)
    return dr, cr


def _single_column_amounts(
    row: Sequence[str | None], mapping: MappingDescriptor
) -> tuple[str, str]:
    amount = parse_amount(_cell(row, mapping.amount_column_index))
    if amount is None:
        return "", ""
    magnitude = format_amount(amount.copy_abs())
    if mapping.type_column_index != ABSENT:
        kind = _cell(row, mapping.type_column_index).upper()
        is_debit = kind in DEBIT_TYPE_MARKERS
    else:
        is_debit = amount < 0
    return (magnitude, "") if is_debit else ("", magnitude)


def _normalize_balance(raw: str) -> str:
    parsed = parse_amount(raw)
    return format_amount(parsed) if parsed is not None else raw


def _normalize_row(
    row: Sequence[str | None], mapping: MappingDescriptor, *, row_index: int
) -> Transaction | None:
    raw_date = _cell(row, mapping.date_column_index)
    if not raw_date:
        _logger.debug("normalize:row_skipped row=%d reason=missing_date", row_index)
        return None

    if mapping.is_single_amount_column:
        dr, cr = _single_column_amounts(row, mapping)
    else:
        dr, cr = _dual_column_amounts(row, mapping)

    return Transaction(
        date=_normalize_date(raw_date, mapping.date_format, row_index=row_index),
        chq_no=_cell(row, mapping.cheque_no_column_index) or CHEQUE_PLACEHOLDER,
        particulars=_cell(row, mapping.description_column_index),
        dr=dr,
        cr=cr,
        bal=_normalize_balance(_cell(row, mapping.balance_column_index)),
        sol=SOL_ID,
    )


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


class TransactionNormalizer:
    """Normalize decoded statement rows into canonical transactions.

    Usage
    -----
    txs = TransactionNormalizer(mapping).normalize(rows)  # -> list[Transaction]
    """

    def __init__(self, mapping: MappingDescriptor) -> None:
        self._mapping = mapping

    @property
    def mapping(self) -> MappingDescriptor:
        return self._mapping

    def iter_transactions(self, rows: Sequence[RawRow]) -> Iterator[Transaction]:
        mapping = self._mapping
        for problem in mapping.warnings():
            _logger.warning("normalize:mapping_warning %s", problem)

        for i in range(mapping.first_data_row, len(rows)):
            row = rows[i]
            if _is_blank(row):
                continue
            try:
                tx = _normalize_row(row, mapping, row_index=i)
            except Exception:  # noqa: BLE001 - one bad row never aborts the batch
                _logger.exception("normalize:row_failed row=%d content=%r", i, list(row or ()))
                continue
            if tx is not None:
                yield tx

    def normalize(self, rows: Sequence[RawRow]) -> list[Transaction]:
        out = list(self.iter_transactions(rows))
        _logger.info(
            "normalize:done rows=%d transactions=%d",
            max(len(rows) - self._mapping.first_data_row, 0),
            len(out),
        )
        return out


def normalize_transactions(
    rows: Sequence[RawRow], mapping: MappingDescriptor
) -> list[Transaction]:
    """Functional shorthand for ``TransactionNormalizer(mapping).normalize(rows)``."""

    return TransactionNormalizer(mapping).normalize(rows)


__all__ = [
    "CANONICAL_DATE_FORMAT",
    "DEBIT_TYPE_MARKERS",
    "TransactionNormalizer",
    "format_amount",
    "normalize_transactions",
    "parse_amount",
    "parse_date",
    "to_strptime_pattern",
]
