"""CLI for the ``statement_converter`` package.

Exposes callable command handlers (``cmd_convert``, ``cmd_detect``) and a
Typer-based console interface. Environment variables (notably
``OPENAI_API_KEY``) are loaded from a local ``.env`` using ``python-dotenv``
before delegating to command logic. Conversion logic lives in
``statement_converter.api`` and related modules.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from typer.models import OptionInfo

from .logging_setup import configure_logging
from .models import AccountDetails, MappingDescriptor

# ---- Small module-level helpers used by CLI commands -------------------------


def _load_json_object(path: Path, *, what: str) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ValueError(f"{what} file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"{what} file is not valid JSON: {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"{what} file must contain a JSON object: {path}")
    return data


def _load_account(path: Path | None) -> AccountDetails:
    if path is None:
        return AccountDetails()
    try:
        return AccountDetails.from_json_mapping(_load_json_object(path, what="Account"))
    except ValidationError as e:
        raise ValueError(f"invalid account details in {path}: {e}") from e


def _load_mapping(path: Path | None) -> MappingDescriptor | None:
    if path is None:
        return None
    try:
        return MappingDescriptor.from_json_mapping(_load_json_object(path, what="Mapping"))
    except ValidationError as e:
        raise ValueError(f"invalid mapping descriptor in {path}: {e}") from e


def _make_detector(detect: bool):
    if not detect:
        return None
    from .detection import OpenAIMappingDetector

    return OpenAIMappingDetector()


def cmd_convert(
    csv_path: str,
    *,
    account_path: str | None = None,
    mapping_path: str | None = None,
    detect: bool = True,
    date_format: str | None = None,
    output_dir: str = ".",
    preview: int = 5,
) -> int:
    """Convert a bank CSV export into an Axis Bank statement file.

    Behavior
    --------
    - Loads account details (JSON, camelCase keys) and an optional mapping
      descriptor (JSON). Without a mapping, detection runs when ``detect`` is
      true, otherwise (or when detection is unavailable) the fallback mapping
      is used.
    - Writes ``Axis_Statement_<accountNo>.csv`` into ``output_dir``.
    - Prints ``Processed <n> transactions -> <path>`` and up to ``preview``
      tab-separated transaction lines to stdout.

    Errors are written to stderr and a non-zero exit status is returned.
    """

    from .api import convert_csv_file, write_statement
    from .ingest.rows import StatementDecodeError

    try:
        account = _load_account(Path(account_path) if account_path else None)
        mapping = _load_mapping(Path(mapping_path) if mapping_path else None)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        result = convert_csv_file(
            csv_path,
            account,
            mapping=mapping,
            detector=_make_detector(detect) if mapping is None else None,
            date_format=date_format,
        )
    except FileNotFoundError:
        print(f"Error: File not found: {csv_path}", file=sys.stderr)
        return 1
    except PermissionError:
        print(f"Error: Permission denied: {csv_path}", file=sys.stderr)
        return 1
    except StatementDecodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if result.used_fallback:
        print(
            "Warning: column detection unavailable; using the default mapping "
            "(date, description, debit, credit, balance).",
            file=sys.stderr,
        )

    try:
        target = write_statement(result, output_dir)
    except OSError as e:
        print(f"Error: failed to write statement: {e}", file=sys.stderr)
        return 1

    print(f"Processed {len(result.transactions)} transactions -> {target}")
    for tx in result.transactions[: max(preview, 0)]:
        print("\t".join(tx.as_row()))
    return 0


def cmd_detect(csv_path: str) -> int:
    """Print the resolved mapping descriptor for ``csv_path`` as JSON."""

    from .detection import OpenAIMappingDetector, resolve_mapping
    from .ingest.rows import StatementDecodeError, load_rows

    try:
        rows = load_rows(csv_path)
    except FileNotFoundError:
        print(f"Error: File not found: {csv_path}", file=sys.stderr)
        return 1
    except StatementDecodeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    mapping, used_fallback = resolve_mapping(rows, OpenAIMappingDetector())
    if used_fallback:
        print("Warning: column detection unavailable; showing the default mapping.", file=sys.stderr)
    print(json.dumps(mapping.to_json_mapping(), indent=2))
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Convert any bank's CSV export into the Axis Bank statement format. "
        "Loads OPENAI_API_KEY from a local .env for optional column detection."
    ),
)


# Options shared by more than one command live at module level.
CSV_PATH_OPTION: OptionInfo = typer.Option(
    ...,
    "--csv-path",
    help="Path to the bank CSV export to convert",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)
ACCOUNT_OPTION: OptionInfo = typer.Option(
    None, "--account", help="JSON file with account details (camelCase keys)."
)
MAPPING_OPTION: OptionInfo = typer.Option(
    None, "--mapping", help="JSON mapping descriptor; skips detection when given."
)


@app.command("convert")
def convert_cmd(
    csv_path: Annotated[Path, CSV_PATH_OPTION],
    *,
    account: Path | None = ACCOUNT_OPTION,
    mapping: Path | None = MAPPING_OPTION,
    detect: bool = typer.Option(
        True, help="Detect the column mapping with OpenAI (falls back when unavailable)."
    ),
    date_format: str | None = typer.Option(
        None, help="Override the date format (date-fns tokens, e.g. dd/MM/yyyy)."
    ),
    output_dir: Path = typer.Option(Path("."), help="Directory for the statement file."),
    preview: int = typer.Option(5, help="Number of converted rows to print."),
) -> None:
    """Convert a bank CSV into an Axis Bank statement CSV."""

    code = cmd_convert(
        str(csv_path),
        account_path=str(account) if account else None,
        mapping_path=str(mapping) if mapping else None,
        detect=detect,
        date_format=date_format,
        output_dir=str(output_dir),
        preview=preview,
    )
    raise typer.Exit(code)


@app.command("detect")
def detect_cmd(csv_path: Annotated[Path, CSV_PATH_OPTION]) -> None:
    """Print the column mapping that would be used for a CSV."""

    raise typer.Exit(cmd_detect(str(csv_path)))


@app.command("account-template")
def account_template_cmd() -> None:
    """Print a sample account details JSON to start from."""

    typer.echo(json.dumps(AccountDetails.sample().to_json_mapping(), indent=2))


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    app()
