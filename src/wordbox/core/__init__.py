"""Domain layer - vocabulary entries and the error taxonomy."""

from .errors import (
    InvalidField,
    InvalidRequest,
    LookupFailed,
    MigrationFailed,
    NotFound,
    StorageUnavailable,
    StoreNotOpen,
    WordBoxError,
    WriteFailed,
)
from .vocabulary_entry import (
    MANUAL_ENTRY_SOURCE,
    VocabularyEntry,
    canonical_id,
    utc_now_iso,
)

__all__ = [
    "VocabularyEntry",
    "canonical_id",
    "utc_now_iso",
    "MANUAL_ENTRY_SOURCE",
    "WordBoxError",
    "StorageUnavailable",
    "MigrationFailed",
    "WriteFailed",
    "NotFound",
    "LookupFailed",
    "StoreNotOpen",
    "InvalidField",
    "InvalidRequest",
]
