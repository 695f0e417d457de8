from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

import statement_converter.detection as detection_mod
from statement_converter.cli import app

from tests.helpers.openai_stub import OpenAIStub

_DATA = Path(__file__).resolve().parents[1] / "data"


def _decide_mapping(rows: list[list[str]]) -> dict[str, Any]:
    """Answer the way a model would for the fixture: locate the header, name columns."""

    header_at = next(i for i, r in enumerate(rows) if r and r[0] == "Txn Date")
    header = rows[header_at]
    return {
        "headerRowIndex": header_at,
        "dateColumnIndex": header.index("Txn Date"),
        "dateFormat": "dd MMM yyyy",
        "descriptionColumnIndex": header.index("Narration"),
        "debitColumnIndex": -1,
        "creditColumnIndex": -1,
        "balanceColumnIndex": header.index("Balance"),
        "chequeNoColumnIndex": header.index("Chq No"),
        "isSingleAmountColumn": True,
        "amountColumnIndex": header.index("Amount"),
        "typeColumnIndex": header.index("Dr/Cr"),
    }


def test_e2e_convert_detected_single_amount_export(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
):
    # -------------------------
    # Inputs: bank export fixture, account details, .env in the working dir
    # -------------------------
    csv_path = _DATA / "single_amount_jan_2024.csv"
    account_path = tmp_path / "account.json"
    account_path.write_text(
        json.dumps(
            {
                "name": "ASHA RAO",
                "jointHolder": "-",
                "address1": "14 LAKE ROAD",
                "customerId": "880011",
                "ifsc": "UTIB0000123",
                "accountNo": "917010000000001",
                "fromDate": "01-01-2024",
                "toDate": "31-01-2024",
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    (tmp_path / ".env").write_text("STATEMENT_CONVERTER_MODEL=gpt-e2e\n", encoding="utf-8")

    # -------------------------
    # Stub the OpenAI client used inside detection.py
    # -------------------------
    calls: list[dict[str, Any]] = []
    monkeypatch.setattr(detection_mod, "OpenAI", lambda: OpenAIStub(_decide_mapping, calls))

    # -------------------------
    # Execute twice to assert byte-identical output
    # -------------------------
    args = [
        "convert",
        "--csv-path",
        str(csv_path),
        "--account",
        str(account_path),
        "--output-dir",
        str(tmp_path / "out"),
    ]
    runner = CliRunner()
    first = runner.invoke(app, args)
    assert first.exit_code == 0, first.output
    target = tmp_path / "out" / "Axis_Statement_917010000000001.csv"
    first_bytes = target.read_bytes()

    second = runner.invoke(app, args)
    assert second.exit_code == 0, second.output
    assert target.read_bytes() == first_bytes

    assert len(calls) == 2
    assert calls[0]["model"] == "gpt-e2e"
    assert "default mapping" not in first.output
    assert "Processed 4 transactions" in first.output

    # -------------------------
    # Expected statement body
    # -------------------------
    lines = first_bytes.decode("utf-8").split("\r\n")
    assert lines[0] == "Name :- ASHA RAO"
    assert "Customer ID :- 880011" in lines
    assert (
        "Statement of Account No - 917010000000001 for the period "
        "(From : 01-01-2024 To : 31-01-2024)"
    ) in lines

    header_at = lines.index("Tran Date,CHQNO,PARTICULARS,DR,CR,BAL,SOL")
    assert lines[header_at + 1 : header_at + 6] == [
        "02-01-2024,-,UPI/COFFEE HOUSE,250.00,,9750.00,100",
        '05-01-2024,-,"NEFT, SALARY JAN",,50000.00,59750.00,100',
        "10-01-2024,000451,CHQ PAID RENT,15000.00,,44750.00,100",
        "31-01-2024,-,INTEREST CREDIT,,12.35,44762.35,100",
        "",
    ]
    assert lines[-2] == "++++ End of Statement ++++"
