"""CSV export of the vocabulary list."""

import csv
from datetime import date
from pathlib import Path
from typing import Iterable, List

from wordbox.core import VocabularyEntry

CSV_HEADERS = [
    "word",
    "translation",
    "transcription",
    "dateAdded",
    "dateLastSeen",
    "sources",
    "count",
    "tags",
]


def default_export_filename(today: date) -> str:
    return f"wordbox_dictionary_{today.isoformat()}.csv"


def entry_to_row(entry: VocabularyEntry) -> List[str]:
    return [
        entry.word,
        ", ".join(entry.translation),
        entry.transcription,
        entry.date_added,
        entry.date_last_seen,
        "; ".join(entry.sources),
        str(entry.count),
        "; ".join(entry.tags or []),
    ]


def export_entries(entries: Iterable[VocabularyEntry], path: Path) -> int:
    """Write entries newest first to ``path``; every field is quoted.

    Returns:
        Number of data rows written.
    """
    ordered = sorted(entries, key=lambda e: e.date_added, reverse=True)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f, quoting=csv.QUOTE_ALL)
        writer.writerow(CSV_HEADERS)
        for entry in ordered:
            writer.writerow(entry_to_row(entry))
    return len(ordered)
