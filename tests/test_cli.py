from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from statement_converter import AccountDetails
from statement_converter.cli import app, cmd_convert

runner = CliRunner()

CSV = (
    "Date,Description,Debit,Credit,Balance\n"
    "01/02/2024,Coffee,50.00,,1000.00\n"
    "02/02/2024,Refund,,20.00,1020.00\n"
)


def _write(tmp_path: Path, name: str, text: str) -> Path:
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_convert_writes_statement_and_prints_summary(tmp_path: Path):
    csv_path = _write(tmp_path, "export.csv", CSV)
    account = _write(
        tmp_path, "account.json", json.dumps({"name": "ASHA RAO", "accountNo": "42"})
    )
    out_dir = tmp_path / "out"

    result = runner.invoke(
        app,
        [
            "convert",
            "--csv-path",
            str(csv_path),
            "--account",
            str(account),
            "--no-detect",
            "--output-dir",
            str(out_dir),
        ],
    )

    assert result.exit_code == 0, result.output
    target = out_dir / "Axis_Statement_42.csv"
    assert f"Processed 2 transactions -> {target}" in result.output
    assert "01-02-2024\t-\tCoffee\t50.00\t\t1000.00\t100" in result.output
    assert "using the default mapping" in result.output
    assert target.read_bytes().startswith(b"Name :- ASHA RAO\r\n")


def test_convert_with_mapping_file_uses_it(tmp_path: Path):
    csv_path = _write(tmp_path, "export.csv", "Narration,Date\nATM,2024-01-09\n")
    mapping = _write(
        tmp_path,
        "mapping.json",
        json.dumps(
            {
                "headerRowIndex": 0,
                "dateColumnIndex": 1,
                "dateFormat": "yyyy-MM-dd",
                "descriptionColumnIndex": 0,
            }
        ),
    )

    result = runner.invoke(
        app,
        [
            "convert",
            "--csv-path",
            str(csv_path),
            "--mapping",
            str(mapping),
            "--output-dir",
            str(tmp_path),
            "--preview",
            "1",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "09-01-2024\t-\tATM\t\t\t\t100" in result.output
    assert "default mapping" not in result.output


def test_convert_without_api_key_falls_back_with_warning(tmp_path: Path):
    csv_path = _write(tmp_path, "export.csv", CSV)

    code = cmd_convert(str(csv_path), output_dir=str(tmp_path))

    assert code == 0
    assert (tmp_path / "Axis_Statement_.csv").exists()


def test_convert_missing_file_exits_non_zero(tmp_path: Path):
    result = runner.invoke(app, ["convert", "--csv-path", str(tmp_path / "nope.csv")])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_convert_invalid_account_json_exits_non_zero(tmp_path: Path):
    csv_path = _write(tmp_path, "export.csv", CSV)
    account = _write(tmp_path, "account.json", "[1, 2]")

    result = runner.invoke(
        app, ["convert", "--csv-path", str(csv_path), "--account", str(account)]
    )

    assert result.exit_code == 1
    assert "must contain a JSON object" in result.output


def test_detect_prints_fallback_mapping_without_key(tmp_path: Path):
    csv_path = _write(tmp_path, "export.csv", CSV)

    result = runner.invoke(app, ["detect", "--csv-path", str(csv_path)])

    assert result.exit_code == 0
    assert '"dateFormat": "dd/MM/yyyy"' in result.output
    assert "showing the default mapping" in result.output


def test_account_template_round_trips():
    result = runner.invoke(app, ["account-template"])

    assert result.exit_code == 0
    assert AccountDetails.from_json_mapping(json.loads(result.output)) == AccountDetails.sample()


def test_unknown_log_level_env_does_not_break_commands(monkeypatch):
    monkeypatch.setenv("STATEMENT_CONVERTER_LOG_LEVEL", "verbose")

    result = runner.invoke(app, ["account-template"])

    assert result.exit_code == 0
    assert json.loads(result.output)["accountNo"] == "123456789012345"
