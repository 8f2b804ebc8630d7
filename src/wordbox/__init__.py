"""
WordBox - a personal vocabulary collector.

Captured words are stored in a local, schema-versioned SQLite database,
enriched with translations from a remote lookup, and can be browsed,
edited, tagged and exported to CSV.
"""

__version__ = "0.4.0"

# Make key components available at package level
from wordbox.core import VocabularyEntry
from wordbox.io import WordStore
from wordbox.coordinators import RequestRouter, get_router

__all__ = [
    "VocabularyEntry",
    "WordStore",
    "RequestRouter",
    "get_router",
]
