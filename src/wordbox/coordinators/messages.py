"""Typed requests and responses of the router's action protocol.

On the wire a request is a dict tagged by ``action`` and a response is a dict
with ``status`` set to ``success`` or ``error``. Inside the process both sides
are closed sets of dataclasses.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union

from wordbox.core import MANUAL_ENTRY_SOURCE, InvalidRequest

DATABASE_NOT_INITIALIZED = "Database not initialized."


@dataclass(frozen=True)
class AddWordRequest:
    ACTION: ClassVar[str] = "addWord"

    word: str
    source_url: str = MANUAL_ENTRY_SOURCE
    tags: Optional[List[str]] = None


@dataclass(frozen=True)
class GetAllWordsRequest:
    ACTION: ClassVar[str] = "getAllWords"


@dataclass(frozen=True)
class UpdateWordRequest:
    ACTION: ClassVar[str] = "updateWord"

    word_id: str
    field: str
    value: Any


@dataclass(frozen=True)
class DeleteWordRequest:
    ACTION: ClassVar[str] = "deleteWord"

    word_id: str


Request = Union[AddWordRequest, GetAllWordsRequest, UpdateWordRequest, DeleteWordRequest]


@dataclass(frozen=True)
class SuccessResponse:
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "success", **self.data}


@dataclass(frozen=True)
class ErrorResponse:
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "error", "message": self.message}


Response = Union[SuccessResponse, ErrorResponse]


def parse_request(message: Dict[str, Any]) -> Optional[Request]:
    """Turn a wire message into a typed request.

    Returns:
        The request, or None when ``action`` is not one this protocol knows.

    Raises:
        InvalidRequest: A known action is missing a field or has a wrong type.
    """
    action = message.get("action")
    if action == AddWordRequest.ACTION:
        word = _require_str(message, "word")
        if not word.strip():
            raise InvalidRequest("Word cannot be empty.")
        source_url = message.get("sourceUrl") or MANUAL_ENTRY_SOURCE
        tags = message.get("tags")
        if tags is not None and not _is_str_list(tags):
            raise InvalidRequest("'tags' must be a list of strings.")
        return AddWordRequest(word=word, source_url=str(source_url), tags=tags)
    if action == GetAllWordsRequest.ACTION:
        return GetAllWordsRequest()
    if action == UpdateWordRequest.ACTION:
        if "value" not in message:
            raise InvalidRequest("Missing required field 'value'.")
        return UpdateWordRequest(
            word_id=_require_str(message, "wordId"),
            field=_require_str(message, "field"),
            value=message["value"],
        )
    if action == DeleteWordRequest.ACTION:
        return DeleteWordRequest(word_id=_require_str(message, "wordId"))
    return None


def _require_str(message: Dict[str, Any], key: str) -> str:
    value = message.get(key)
    if not isinstance(value, str):
        raise InvalidRequest(f"Missing required field '{key}'.")
    return value


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)
