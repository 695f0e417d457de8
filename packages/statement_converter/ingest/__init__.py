"""Raw statement decoding and tokenization."""

from .rows import StatementDecodeError, load_rows, read_rows, rows_to_csv

__all__ = ["StatementDecodeError", "load_rows", "read_rows", "rows_to_csv"]
