"""Gemini Lookup Service - word translations via Google Gemini API."""

import json
from typing import Any, Dict, Optional

import google.genai as genai
import structlog
from google.genai import types

from wordbox.core import LookupFailed
from wordbox.services.lookup.lookup_service import LookupResult, LookupService

logger = structlog.get_logger()


class GeminiLookupService(LookupService):
    """
    Lookup service using Google Gemini API.

    Asks for a strict JSON object so the answer maps straight onto an entry's
    ``translation`` and ``transcription`` fields.
    """

    MODEL_NAME = "gemini-2.5-flash-lite"

    LOOKUP_PROMPT = """You are a bilingual dictionary. For the English word below, give
its most common {language} translations (at most {max_translations}) and its
IPA transcription without surrounding slashes or brackets.
Answer with a JSON object only:
{{"translations": ["..."], "transcription": "..."}}

Word: {word}"""

    def __init__(
        self,
        api_key: str,
        language: str = "Russian",
        max_translations: int = 3,
        client: Optional[Any] = None,
    ) -> None:
        self.api_key = api_key
        self.language = language
        self.max_translations = max_translations
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def lookup(self, word: str) -> LookupResult:
        """
        Look up ``word`` with the Gemini API.

        Returns:
            LookupResult with translations and transcription.

        Raises:
            LookupFailed: On API errors, empty responses or unparseable output.
        """
        prompt = self.LOOKUP_PROMPT.format(
            word=word,
            language=self.language,
            max_translations=self.max_translations,
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.MODEL_NAME,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=0.2,
                    max_output_tokens=256,
                    response_mime_type="application/json",
                ),
            )
        except Exception as e:
            raise LookupFailed(self._describe_error(e)) from e

        if not response.text:
            raise LookupFailed("Empty response from API")

        result = self._parse(response.text)
        logger.debug(
            "lookup_succeeded",
            word=word,
            translations=len(result.translations),
            model=self.MODEL_NAME,
        )
        return result

    def _parse(self, text: str) -> LookupResult:
        try:
            payload: Dict[str, Any] = json.loads(text)
        except json.JSONDecodeError as e:
            raise LookupFailed(f"Malformed lookup response: {e}") from e
        if not isinstance(payload, dict):
            raise LookupFailed("Malformed lookup response: expected a JSON object")

        raw_translations = payload.get("translations") or []
        if isinstance(raw_translations, str):
            raw_translations = [raw_translations]
        translations = [str(t).strip() for t in raw_translations if str(t).strip()]
        transcription = str(payload.get("transcription") or "").strip().strip("[]/")
        return LookupResult(
            translations=translations[: self.max_translations],
            transcription=transcription,
            model=self.MODEL_NAME,
        )

    @staticmethod
    def _describe_error(error: Exception) -> str:
        error_msg = str(error).lower()
        if "api_key" in error_msg or "authentication" in error_msg or "invalid" in error_msg:
            return f"Invalid API key or request: {error}"
        if "429" in error_msg or "quota" in error_msg or "rate_limit" in error_msg or "resource_exhausted" in error_msg:
            return "API quota exceeded. Please try again later."
        if "deadline" in error_msg or "timeout" in error_msg:
            return "Request timed out. Please check your connection."
        return f"Lookup failed: {error}"
