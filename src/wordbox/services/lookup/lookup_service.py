"""Lookup Service - abstract word enrichment (translations + transcription)."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class LookupResult:
    """Result of a word lookup. Empty lists/strings mean "nothing known"."""

    translations: List[str] = field(default_factory=list)
    transcription: str = ""
    model: str = ""
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        """True if lookup failed."""
        return self.error is not None


class LookupService(ABC):
    """
    Abstract service that enriches a captured word.

    Implementations (e.g., GeminiLookupService) handle remote calls and raise
    LookupFailed when the remote side cannot be used.
    """

    @abstractmethod
    async def lookup(self, word: str) -> LookupResult:
        """
        Look up translations and a phonetic transcription for a word.

        Args:
            word: The word as captured (display form).

        Returns:
            LookupResult with zero or more translations.

        Raises:
            LookupFailed: If the lookup could not be performed.
        """
        pass


class NullLookupService(LookupService):
    """Used when no lookup backend is configured; knows nothing about any word."""

    async def lookup(self, word: str) -> LookupResult:
        return LookupResult(model="none")
