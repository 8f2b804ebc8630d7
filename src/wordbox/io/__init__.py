"""I/O layer - vocabulary persistence, schema upgrades and export."""

from .csv_exporter import CSV_HEADERS, default_export_filename, export_entries
from .schema_migrator import TARGET_SCHEMA_VERSION, SchemaMigrator
from .word_store import WordStore

__all__ = [
    "WordStore",
    "SchemaMigrator",
    "TARGET_SCHEMA_VERSION",
    "export_entries",
    "default_export_filename",
    "CSV_HEADERS",
]
