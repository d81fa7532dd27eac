"""Public interface for the ``finflow`` package.

Symbol re-exports only: models, the extract → normalize → classify pipeline,
aggregates and the session that owns persisted state.
"""

from .aggregate import (
    MonthlyFlow,
    SpendingSummary,
    Totals,
    category_breakdown,
    compute_totals,
    filter_transactions,
    format_currency,
    monthly_trend,
)
from .extractors import extract_millennium, extract_revolut, extract_spreadsheet
from .ingest import UNRECOGNIZED_MESSAGE, FileReadError, UploadResult, import_file
from .models import (
    DEFAULT_CATEGORY,
    AutoRule,
    Category,
    MatchMode,
    RawTriple,
    Source,
    Transaction,
    TransactionType,
)
from .normalizers import CSVNormalizer, normalize_rows, to_transaction
from .rules import DEFAULT_CATEGORY_MAP, apply_rule, classify, classify_all, make_rule
from .session import FinanceSession

__all__ = [
    # Models / types
    "AutoRule",
    "Category",
    "DEFAULT_CATEGORY",
    "MatchMode",
    "RawTriple",
    "Source",
    "Transaction",
    "TransactionType",
    # Pipeline
    "CSVNormalizer",
    "extract_millennium",
    "extract_revolut",
    "extract_spreadsheet",
    "normalize_rows",
    "to_transaction",
    "DEFAULT_CATEGORY_MAP",
    "apply_rule",
    "classify",
    "classify_all",
    "make_rule",
    # Import
    "FileReadError",
    "UNRECOGNIZED_MESSAGE",
    "UploadResult",
    "import_file",
    # Aggregates
    "MonthlyFlow",
    "SpendingSummary",
    "Totals",
    "category_breakdown",
    "compute_totals",
    "filter_transactions",
    "format_currency",
    "monthly_trend",
    # State
    "FinanceSession",
]
