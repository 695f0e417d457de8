"""Public interface for the ``statement_converter`` package.

Re-exports the conversion API, the data contracts and the core components as
the stable import surface. There is no runtime logic here.
"""

from .api import (
    ConversionResult,
    convert_csv,
    convert_csv_file,
    convert_statement,
    write_statement,
)
from .detection import (
    MappingDetector,
    MappingUnavailable,
    OpenAIMappingDetector,
    resolve_mapping,
)
from .ingest import StatementDecodeError, load_rows, read_rows
from .models import FALLBACK_MAPPING, AccountDetails, MappingDescriptor
from .normalizers import TransactionNormalizer, normalize_transactions
from .records import Transaction
from .rendering import StatementRenderer, render_statement, statement_filename

__all__ = [
    # API
    "convert_csv",
    "convert_csv_file",
    "convert_statement",
    "write_statement",
    "ConversionResult",
    # Core
    "TransactionNormalizer",
    "normalize_transactions",
    "StatementRenderer",
    "render_statement",
    "statement_filename",
    # Ingest
    "read_rows",
    "load_rows",
    "StatementDecodeError",
    # Detection
    "MappingDetector",
    "MappingUnavailable",
    "OpenAIMappingDetector",
    "resolve_mapping",
    # Models
    "AccountDetails",
    "MappingDescriptor",
    "FALLBACK_MAPPING",
    "Transaction",
]
