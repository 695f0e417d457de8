"""Serialize canonical transactions into the Axis Bank statement CSV layout.

The consuming importer validates statements by position, so the header block,
the column order ``Tran Date, CHQNO, PARTICULARS, DR, CR, BAL, SOL`` and the
trailer lines are reproduced exactly. Quoting follows RFC 4180 via the stdlib
:mod:`csv` writer (minimal quoting, ``\\r\\n`` line endings).

The renderer never reformats values; dates and amounts are written exactly as
the normalizer produced them.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable
from io import StringIO

from .logging_setup import get_logger
from .models import AccountDetails
from .records import Transaction

COLUMN_HEADER: tuple[str, ...] = ("Tran Date", "CHQNO", "PARTICULARS", "DR", "CR", "BAL", "SOL")

TRAILER_LINES: tuple[str, ...] = (
    "Unless the constituent notifies the bank immediately of any discrepancy found by "
    "him/her in this statement of Account, it will be taken that he/she has found the "
    "account correct.",
    "++++ End of Statement ++++",
)

FILENAME_TEMPLATE: str = "Axis_Statement_{account_no}.csv"

_logger = get_logger("statement_converter.render")


def header_lines(account: AccountDetails) -> list[str]:
    """Return the metadata block printed above the transaction table."""

    return [
        f"Name :- {account.name}",
        f"Joint Holder :- {account.joint_holder}",
        account.address1,
        account.address2,
        account.address3,
        account.address4,
        f"Customer ID :- {account.customer_id}",
        f"IFSC Code :- {account.ifsc}",
        f"MICR Code :- {account.micr}",
        f"Nominee Registered :- {account.nominee_reg}",
        f"Nominee Name :- {account.nominee_name}",
        f"Registered Mobile No :- {account.mobile}",
        f"Registered Email ID :- {account.email}",
        f"PAN :- {account.pan}",
        f"CKYC Number :- {account.ckyc}",
        (
            f"Statement of Account No - {account.account_no} for the period "
            f"(From : {account.from_date} To : {account.to_date})"
        ),
    ]


class StatementRenderer:
    """Pure serializer from transactions + account metadata to statement text."""

    def __init__(self, *, lineterminator: str = "\r\n") -> None:
        self._lineterminator = lineterminator

    def render(self, transactions: Iterable[Transaction], account: AccountDetails) -> str:
        buf = StringIO()
        w = csv.writer(buf, lineterminator=self._lineterminator)

        for line in header_lines(account):
            # csv writes a lone empty cell as '""'; an unused address line stays blank.
            w.writerow([line] if line else [])
        w.writerow([])
        w.writerow(COLUMN_HEADER)
        count = 0
        for tx in transactions:
            w.writerow(tx.as_row())
            count += 1
        w.writerow([])
        for line in TRAILER_LINES:
            w.writerow([line])

        _logger.info("render:done account_no=%s transactions=%d", account.account_no, count)
        return buf.getvalue()


def render_statement(transactions: Iterable[Transaction], account: AccountDetails) -> str:
    return StatementRenderer().render(transactions, account)


def statement_filename(account: AccountDetails) -> str:
    """File name expected by the importer, embedding the account number."""

    return FILENAME_TEMPLATE.format(account_no=account.account_no)


__all__ = [
    "COLUMN_HEADER",
    "TRAILER_LINES",
    "StatementRenderer",
    "header_lines",
    "render_statement",
    "statement_filename",
]
