"""Prompt construction for column-mapping detection.

This module builds:
- The system instructions for the detection task.
- The user content embedding a CSV sample of the statement.
- The strict ``response_format`` (JSON Schema) object for the OpenAI
  Responses API, requiring every mapping descriptor field.
"""

from __future__ import annotations

from openai.types.responses.response_format_text_json_schema_config_param import (
    ResponseFormatTextJSONSchemaConfigParam,
)

BEGIN = "BEGIN_CSV_SAMPLE\n"
END = "\nEND_CSV_SAMPLE"

MAPPING_FIELD_ORDER: tuple[str, ...] = (
    "headerRowIndex",
    "dateColumnIndex",
    "dateFormat",
    "descriptionColumnIndex",
    "debitColumnIndex",
    "creditColumnIndex",
    "balanceColumnIndex",
    "chequeNoColumnIndex",
    "isSingleAmountColumn",
    "amountColumnIndex",
    "typeColumnIndex",
)

_USER_TEMPLATE = """\
I have a CSV file from a bank statement. I need to map its columns to a standard format.
Here are the first {num_rows} rows of the CSV:
{begin}{sample}{end}

Identify the column indices (0-based) for the following fields:
- Date
- Description / Particulars / Narration
- Debit / Withdrawal amount
- Credit / Deposit amount
- Balance
- Cheque No / Ref No

Also identify:
- The date format used in the Date column (e.g. "dd/MM/yyyy", "MM/dd/yyyy", \
"yyyy-MM-dd", "dd-MM-yyyy"). Use date-fns format tokens.
- Whether the bank uses a single "Amount" column instead of separate Debit/Credit columns.
- With a single Amount column, which column indicates the transaction type (Dr/Cr), \
or -1 if negative amounts indicate debits.
- The index of the header row (the row containing column names like "Date", "Description").

If a field is not found, return -1.
"""


def build_system_instructions() -> str:
    return (
        "You are an agent that maps the columns of bank statement CSV exports to a fixed "
        "schema. Inspect the sample, never invent columns that are not present, and output "
        "JSON only that conforms to the specified schema."
    )


def build_user_content(sample_csv: str, *, num_rows: int) -> str:
    """Embed the CSV sample between BEGIN_/END_ markers."""

    return _USER_TEMPLATE.format(
        num_rows=num_rows, begin=BEGIN, sample=sample_csv.rstrip("\n"), end=END
    )


def build_response_format() -> ResponseFormatTextJSONSchemaConfigParam:
    """Return the strict JSON Schema ``response_format`` for a mapping descriptor."""

    properties: dict[str, dict[str, object]] = {}
    for key in MAPPING_FIELD_ORDER:
        if key == "dateFormat":
            properties[key] = {
                "type": "string",
                "description": "date-fns format string, e.g. dd/MM/yyyy, yyyy-MM-dd",
            }
        elif key == "isSingleAmountColumn":
            properties[key] = {"type": "boolean"}
        else:
            properties[key] = {"type": "integer"}
    properties["headerRowIndex"]["description"] = (
        "The 0-based index of the row containing column headers."
    )
    properties["typeColumnIndex"]["description"] = (
        "Index of the column indicating Dr/Cr when a single amount column is used; "
        "-1 if negative amounts are used instead."
    )

    result: ResponseFormatTextJSONSchemaConfigParam = {
        "type": "json_schema",
        "name": "csv_mapping",
        "schema": {
            "type": "object",
            "properties": properties,
            "required": list(MAPPING_FIELD_ORDER),
            "additionalProperties": False,
        },
        "strict": True,
    }
    return result


__all__ = [
    "BEGIN",
    "END",
    "MAPPING_FIELD_ORDER",
    "build_response_format",
    "build_system_instructions",
    "build_user_content",
]
