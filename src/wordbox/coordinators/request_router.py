"""Request Router - the single gateway from callers to the word store."""

from typing import Any, Dict, List, Optional, Tuple

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from wordbox.coordinators.messages import (
    DATABASE_NOT_INITIALIZED,
    AddWordRequest,
    DeleteWordRequest,
    ErrorResponse,
    GetAllWordsRequest,
    Request,
    Response,
    SuccessResponse,
    UpdateWordRequest,
    parse_request,
)
from wordbox.core import (
    InvalidRequest,
    StorageUnavailable,
    VocabularyEntry,
    WordBoxError,
    canonical_id,
)
from wordbox.io import WordStore
from wordbox.services import GeminiLookupService, LookupService, NullLookupService, SettingsManager

logger = structlog.get_logger()


def _log_open_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "store_open_retry",
        attempt=retry_state.attempt_number,
        error=str(error),
    )


class RequestRouter:
    """
    Dispatches action messages to the word store.

    Every action is rejected with "Database not initialized." until ``start()``
    has opened the store; callers are expected to retry rather than wait.
    """

    def __init__(
        self,
        store: WordStore,
        lookup: Optional[LookupService] = None,
        open_attempts: int = 5,
        backoff_min: float = 0.1,
        backoff_max: float = 10.0,
    ) -> None:
        self._store = store
        self._lookup = lookup or NullLookupService()
        self._open_attempts = open_attempts
        self._backoff_min = backoff_min
        self._backoff_max = backoff_max

    @property
    def store(self) -> WordStore:
        return self._store

    @property
    def is_ready(self) -> bool:
        return self._store.is_open

    async def start(self) -> None:
        """Open the store, retrying with exponential backoff while it is unavailable.

        Raises:
            StorageUnavailable: Still unavailable after the last attempt.
            MigrationFailed: An upgrade step failed; not retried.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._open_attempts),
            wait=wait_exponential(multiplier=self._backoff_min, min=self._backoff_min, max=self._backoff_max),
            retry=retry_if_exception_type(StorageUnavailable),
            before_sleep=_log_open_retry,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                await self._store.open()
        logger.info("router_ready", path=str(self._store.db_path))

    async def close(self) -> None:
        await self._store.close()

    async def handle(self, message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Answer one wire message.

        Returns:
            The wire response, or None for actions this router does not handle.
        """
        action = message.get("action")
        if not self.is_ready:
            logger.error("router_database_not_initialized", action=action)
            return ErrorResponse(DATABASE_NOT_INITIALIZED).to_dict()

        try:
            request = parse_request(message)
        except InvalidRequest as e:
            logger.warning("router_invalid_request", action=action, error=str(e))
            return ErrorResponse(str(e)).to_dict()

        if request is None:
            logger.warning("router_unhandled_action", action=action)
            return None

        response = await self.dispatch(request)
        return response.to_dict()

    async def dispatch(self, request: Request) -> Response:
        try:
            if isinstance(request, AddWordRequest):
                entry = await self._add_word(request)
                return SuccessResponse({"word": entry.to_dict()})
            if isinstance(request, GetAllWordsRequest):
                entries = await self._store.get_all()
                return SuccessResponse({"words": [entry.to_dict() for entry in entries]})
            if isinstance(request, UpdateWordRequest):
                await self._store.update_field(request.word_id, request.field, request.value)
                return SuccessResponse()
            if isinstance(request, DeleteWordRequest):
                await self._store.delete(request.word_id)
                return SuccessResponse()
        except WordBoxError as e:
            logger.error("router_action_failed", action=request.ACTION, error=str(e))
            return ErrorResponse(str(e))
        raise TypeError(f"Unsupported request type: {type(request).__name__}")

    async def _add_word(self, request: AddWordRequest) -> VocabularyEntry:
        word = request.word.strip()
        translation: List[str] = []
        transcription = ""
        existing = await self._store.get(canonical_id(word))
        if existing is None or not existing.translation:
            translation, transcription = await self._enrich(word)

        candidate = VocabularyEntry.new(
            word,
            request.source_url,
            tags=request.tags,
            translation=translation,
            transcription=transcription,
        )
        return await self._store.upsert_merge(candidate)

    async def _enrich(self, word: str) -> Tuple[List[str], str]:
        try:
            result = await self._lookup.lookup(word)
        except Exception as e:
            # Lookup is best-effort; the capture is written without it.
            logger.warning("lookup_failed", word=word, error=str(e))
            return [], ""
        if result.is_error:
            logger.warning("lookup_failed", word=word, error=result.error)
            return [], ""
        return list(result.translations), result.transcription


_router: Optional[RequestRouter] = None


def build_router(settings: SettingsManager) -> RequestRouter:
    api_key = settings.get_gemini_api_key()
    lookup: LookupService
    if api_key:
        lookup = GeminiLookupService(api_key, language=settings.get_lookup_language())
    else:
        lookup = NullLookupService()
    return RequestRouter(
        WordStore(settings.get_db_path()),
        lookup,
        open_attempts=settings.get_open_attempts(),
    )


def get_router(settings: Optional[SettingsManager] = None) -> RequestRouter:
    """Return the process-wide router, building it on first use."""
    global _router
    if _router is None:
        _router = build_router(settings or SettingsManager())
    return _router


async def shutdown_router() -> None:
    """Close the process-wide router's store and forget it."""
    global _router
    router, _router = _router, None
    if router is not None:
        await router.close()
