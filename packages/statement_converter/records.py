"""Canonical transaction record.

A frozen ``dataclass`` with an explicit field order. The order is the column
order of the rendered statement and must not change:

    - date: ``dd-MM-yyyy`` when the source date parsed, else the raw text
    - chq_no: cheque/reference number, ``"-"`` when absent
    - particulars: free-text description
    - dr: debit amount (two decimals) or ``""``
    - cr: credit amount (two decimals) or ``""``
    - bal: balance (two decimals) or the raw text when unparsable
    - sol: branch/unit identifier, always :data:`SOL_ID`
"""

from __future__ import annotations

from dataclasses import astuple, dataclass

SOL_ID: str = "100"

CHEQUE_PLACEHOLDER: str = "-"


@dataclass(frozen=True, slots=True)
class Transaction:
    """A single normalized statement row.

    All fields are strings so the record can be serialized without further
    formatting decisions downstream.
    """

    date: str
    chq_no: str
    particulars: str
    dr: str
    cr: str
    bal: str
    sol: str = SOL_ID

    def as_row(self) -> tuple[str, ...]:
        return astuple(self)


__all__ = ["CHEQUE_PLACEHOLDER", "SOL_ID", "Transaction"]
