"""Vocabulary entry entity shared by the store, router and exporter."""

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

MANUAL_ENTRY_SOURCE = "manual_entry"


def utc_now_iso() -> str:
    """Current time as an ISO-8601 UTC string, e.g. 2024-05-01T10:20:30.123Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def canonical_id(word: str) -> str:
    return word.strip().lower()


@dataclass
class VocabularyEntry:
    id: str
    word: str
    translation: List[str] = field(default_factory=list)
    transcription: str = ""
    date_added: str = ""
    date_last_seen: str = ""
    sources: List[str] = field(default_factory=list)
    count: int = 1
    # None only on unsaved candidates: "no tags given", as opposed to [].
    tags: Optional[List[str]] = None

    @classmethod
    def new(
        cls,
        word: str,
        source: str,
        tags: Optional[List[str]] = None,
        translation: Optional[List[str]] = None,
        transcription: str = "",
    ) -> "VocabularyEntry":
        """Build a creation candidate for a freshly captured word.

        ``tags`` stays ``None`` when the caller gave none, so the merge path can
        tell "not provided" apart from "provided but empty".
        """
        now = utc_now_iso()
        return cls(
            id=canonical_id(word),
            word=word.strip(),
            translation=list(translation or []),
            transcription=transcription or "",
            date_added=now,
            date_last_seen=now,
            sources=[source],
            count=1,
            tags=list(tags) if tags is not None else None,
        )

    def copy(self) -> "VocabularyEntry":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "word": self.word,
            "translation": list(self.translation),
            "transcription": self.transcription,
            "dateAdded": self.date_added,
            "dateLastSeen": self.date_last_seen,
            "sources": list(self.sources),
            "count": self.count,
            "tags": list(self.tags or []),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VocabularyEntry":
        word = data["word"]
        return cls(
            id=data.get("id") or canonical_id(word),
            word=word,
            translation=list(data.get("translation") or []),
            transcription=data.get("transcription") or "",
            date_added=data.get("dateAdded") or "",
            date_last_seen=data.get("dateLastSeen") or "",
            sources=list(data.get("sources") or []),
            count=int(data.get("count") or 1),
            tags=list(data.get("tags") or []),
        )
