"""Lookup services - abstract interface, Gemini implementation and a null fallback."""

from wordbox.services.lookup.lookup_service import LookupResult, LookupService, NullLookupService
from wordbox.services.lookup.gemini_lookup_service import GeminiLookupService

__all__ = [
    "LookupService",
    "LookupResult",
    "NullLookupService",
    "GeminiLookupService",
]
