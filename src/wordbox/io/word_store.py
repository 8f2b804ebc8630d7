"""SQLite-backed persistent store for vocabulary entries."""

import asyncio
import json
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, List, Optional

import structlog

from wordbox.core import (
    InvalidField,
    MigrationFailed,
    NotFound,
    StorageUnavailable,
    StoreNotOpen,
    VocabularyEntry,
    WriteFailed,
    canonical_id,
    utc_now_iso,
)
from wordbox.io.schema_migrator import TARGET_SCHEMA_VERSION, WORDS_TABLE, SchemaMigrator
from wordbox.io.sqlite_transaction import transaction

logger = structlog.get_logger()

EDITABLE_FIELDS = ("word", "translation", "transcription", "tags")
LIST_FIELDS = ("translation", "tags")

_COLUMNS = (
    "id, word, translation, transcription, date_added, date_last_seen, "
    "sources, count, tags"
)


class WordStore:
    """Owns the SQLite connection, the schema and every vocabulary write.

    The connection is only ever touched from one dedicated worker thread, so
    each operation runs as one isolated unit against the engine while callers
    stay on the event loop. ``upsert_merge`` is additionally serialized by an
    asyncio lock and runs its lookup and write in one ``BEGIN IMMEDIATE``
    transaction: two captures of the same new word can never both take the
    creation branch.
    """

    def __init__(self, db_path: Path, target_version: int = TARGET_SCHEMA_VERSION) -> None:
        self.db_path = Path(db_path)
        self.target_version = target_version
        self._connection: Optional[sqlite3.Connection] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._open_task: Optional["asyncio.Future[None]"] = None
        self._merge_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    async def open(self) -> "WordStore":
        """Open the database and run pending migrations; safe to call repeatedly.

        Concurrent callers share one in-flight open instead of racing to create
        two connections.

        Raises:
            StorageUnavailable: The engine could not be opened. Retryable.
            MigrationFailed: An upgrade step failed. The store stays closed.
        """
        if self._connection is not None:
            return self
        if self._open_task is None:
            self._open_task = asyncio.ensure_future(self._open())
        task = self._open_task
        try:
            await task
        finally:
            if self._open_task is task and task.done():
                self._open_task = None
        return self

    async def close(self) -> None:
        """Close the connection after every operation already queued has run.

        Operations queued after ``close()`` fail with ``StoreNotOpen``.
        """
        if self._connection is None:
            return
        executor = self._executor
        loop = asyncio.get_running_loop()
        closed = await loop.run_in_executor(executor, self._close_sync)
        if self._executor is executor:
            self._executor = None
        executor.shutdown(wait=False)
        if closed:
            logger.info("word_store_closed", path=str(self.db_path))

    async def get_all(self) -> List[VocabularyEntry]:
        """Return every stored entry, newest first."""
        return await self._run(self._get_all_sync)

    async def get(self, word_id: str) -> Optional[VocabularyEntry]:
        """Return the entry for ``word_id`` or ``None`` when there is none."""
        return await self._run(self._get_sync, word_id)

    async def put(self, entry: VocabularyEntry) -> VocabularyEntry:
        """Insert or fully replace an entry as given (manual insertion path)."""
        return await self._run(self._put_sync, entry.copy())

    async def upsert_merge(self, candidate: VocabularyEntry) -> VocabularyEntry:
        """Create the entry for ``candidate.id`` or merge the capture into it.

        Raises:
            WriteFailed: The transaction aborted; nothing of the candidate is applied.
        """
        async with self._merge_lock:
            return await self._run(self._upsert_merge_sync, candidate.copy())

    async def update_field(self, word_id: str, field: str, value: Any) -> VocabularyEntry:
        """Replace one editable field of an existing entry.

        ``count``, ``date_added`` and ``sources`` are never touched. A new ``word``
        may only change the display form: it must fold to the same ``word_id``.

        Raises:
            InvalidField: Unknown field, a malformed value, or a ``word`` that re-keys the entry.
            NotFound: No entry with ``word_id``.
            WriteFailed: The engine rejected the write.
        """
        self._validate_field(word_id, field, value)
        return await self._run(self._update_field_sync, word_id, field, value)

    async def delete(self, word_id: str) -> None:
        """Remove the entry; deleting an unknown id is a successful no-op."""
        await self._run(self._delete_sync, word_id)

    async def _open(self) -> None:
        loop = asyncio.get_running_loop()
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="wordbox-store")
        try:
            connection = await loop.run_in_executor(executor, self._connect)
        except StorageUnavailable:
            executor.shutdown(wait=False)
            raise

        migrator = SchemaMigrator(connection, self.target_version)
        try:
            version = await loop.run_in_executor(executor, migrator.migrate)
        except MigrationFailed:
            await loop.run_in_executor(executor, connection.close)
            executor.shutdown(wait=False)
            raise

        self._connection = connection
        self._executor = executor
        logger.info("word_store_opened", path=str(self.db_path), schema_version=version)

    def _connect(self) -> sqlite3.Connection:
        connection: Optional[sqlite3.Connection] = None
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            connection = sqlite3.connect(
                self.db_path, isolation_level=None, check_same_thread=False
            )
            connection.row_factory = sqlite3.Row
            # sqlite3.connect is lazy; touch the file so corruption surfaces here.
            connection.execute("PRAGMA schema_version").fetchone()
        except (sqlite3.Error, OSError) as e:
            if connection is not None:
                connection.close()
            logger.error("word_store_open_failed", path=str(self.db_path), error=str(e))
            raise StorageUnavailable(f"Cannot open database at {self.db_path}: {e}") from e
        return connection

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        if self._connection is None:
            raise StoreNotOpen("Database not open.")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self._call_open, func, *args)

    def _call_open(self, func: Callable[..., Any], *args: Any) -> Any:
        # Runs on the worker; close() may have detached the connection since queuing.
        if self._connection is None:
            raise StoreNotOpen("Database not open.")
        return func(*args)

    def _close_sync(self) -> bool:
        connection, self._connection = self._connection, None
        if connection is None:
            return False
        connection.close()
        return True

    def _get_all_sync(self) -> List[VocabularyEntry]:
        try:
            cur = self._connection.execute(
                f"SELECT {_COLUMNS} FROM {WORDS_TABLE} ORDER BY date_added DESC, id ASC"
            )
            rows = cur.fetchall()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Failed to read words: {e}") from e
        return [self._row_to_entry(row) for row in rows]

    def _get_sync(self, word_id: str) -> Optional[VocabularyEntry]:
        try:
            row = self._select(word_id)
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Failed to read word '{word_id}': {e}") from e
        return self._row_to_entry(row) if row else None

    def _put_sync(self, entry: VocabularyEntry) -> VocabularyEntry:
        entry = self._normalized(entry)
        try:
            with transaction(self._connection):
                self._write(entry)
        except sqlite3.Error as e:
            raise WriteFailed(f"Failed to save word '{entry.id}': {e}") from e
        logger.debug("word_put", word_id=entry.id)
        return entry

    def _upsert_merge_sync(self, candidate: VocabularyEntry) -> VocabularyEntry:
        try:
            with transaction(self._connection):
                row = self._select(candidate.id)
                if row is None:
                    entry = self._normalized(candidate)
                else:
                    entry = self._row_to_entry(row)
                    self._merge_capture(entry, candidate)
                self._write(entry)
        except sqlite3.Error as e:
            logger.error("word_merge_failed", word_id=candidate.id, error=str(e))
            raise WriteFailed(f"Failed to save word '{candidate.id}': {e}") from e

        if row is None:
            logger.info("word_created", word_id=entry.id)
        else:
            logger.info("word_merged", word_id=entry.id, count=entry.count)
        return entry

    def _update_field_sync(self, word_id: str, field: str, value: Any) -> VocabularyEntry:
        try:
            with transaction(self._connection):
                row = self._select(word_id)
                if row is None:
                    raise NotFound(word_id)
                entry = self._row_to_entry(row)
                setattr(entry, field, list(value) if field in LIST_FIELDS else value)
                entry.date_last_seen = utc_now_iso()
                self._write(entry)
        except sqlite3.Error as e:
            raise WriteFailed(f"Failed to update word '{word_id}': {e}") from e
        logger.info("word_field_updated", word_id=word_id, field=field)
        return entry

    def _delete_sync(self, word_id: str) -> None:
        try:
            with transaction(self._connection):
                cur = self._connection.execute(
                    f"DELETE FROM {WORDS_TABLE} WHERE id = ?", (word_id,)
                )
        except sqlite3.Error as e:
            raise WriteFailed(f"Failed to delete word '{word_id}': {e}") from e
        logger.info("word_deleted", word_id=word_id, existed=cur.rowcount > 0)

    def _select(self, word_id: str) -> Optional[sqlite3.Row]:
        cur = self._connection.execute(
            f"SELECT {_COLUMNS} FROM {WORDS_TABLE} WHERE id = ?", (word_id,)
        )
        return cur.fetchone()

    def _write(self, entry: VocabularyEntry) -> None:
        self._connection.execute(
            f"""
            INSERT INTO {WORDS_TABLE} ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                word = excluded.word,
                translation = excluded.translation,
                transcription = excluded.transcription,
                date_added = excluded.date_added,
                date_last_seen = excluded.date_last_seen,
                sources = excluded.sources,
                count = excluded.count,
                tags = excluded.tags
            """,
            (
                entry.id,
                entry.word,
                json.dumps(entry.translation, ensure_ascii=False),
                entry.transcription,
                entry.date_added,
                entry.date_last_seen,
                json.dumps(entry.sources, ensure_ascii=False),
                entry.count,
                json.dumps(entry.tags, ensure_ascii=False),
            ),
        )

    @staticmethod
    def _merge_capture(existing: VocabularyEntry, candidate: VocabularyEntry) -> None:
        existing.count = (existing.count or 0) + 1
        existing.date_last_seen = utc_now_iso()
        if candidate.sources and candidate.sources[0] not in existing.sources:
            existing.sources.append(candidate.sources[0])
        # A fresh lookup supersedes the stored one instead of being appended.
        if candidate.translation:
            existing.translation = list(candidate.translation)
        if candidate.transcription:
            existing.transcription = candidate.transcription
        # An explicit list replaces the tags, even an empty one.
        if candidate.tags is not None:
            existing.tags = list(candidate.tags)

    @staticmethod
    def _normalized(entry: VocabularyEntry) -> VocabularyEntry:
        entry.translation = list(entry.translation or [])
        entry.transcription = entry.transcription or ""
        entry.tags = list(entry.tags or [])
        sources: List[str] = []
        for source in entry.sources or []:
            if source not in sources:
                sources.append(source)
        entry.sources = sources
        if not entry.count or entry.count < 1:
            entry.count = 1
        if not entry.date_added:
            entry.date_added = utc_now_iso()
        if not entry.date_last_seen or entry.date_last_seen < entry.date_added:
            entry.date_last_seen = entry.date_added
        return entry

    @staticmethod
    def _validate_field(word_id: str, field: str, value: Any) -> None:
        if field not in EDITABLE_FIELDS:
            raise InvalidField(
                f"Field '{field}' cannot be edited; expected one of {', '.join(EDITABLE_FIELDS)}"
            )
        if field in LIST_FIELDS:
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise InvalidField(f"Field '{field}' must be a list of strings")
        elif not isinstance(value, str):
            raise InvalidField(f"Field '{field}' must be a string")
        elif field == "word" and not value.strip():
            raise InvalidField("Field 'word' cannot be empty")
        elif field == "word" and canonical_id(value) != word_id:
            raise InvalidField(
                f"Word '{value.strip()}' does not match entry '{word_id}'; add it as a new word instead"
            )

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> VocabularyEntry:
        return VocabularyEntry(
            id=row["id"],
            word=row["word"],
            translation=json.loads(row["translation"] or "[]"),
            transcription=row["transcription"] or "",
            date_added=row["date_added"],
            date_last_seen=row["date_last_seen"],
            sources=json.loads(row["sources"] or "[]"),
            count=row["count"],
            tags=json.loads(row["tags"] or "[]"),
        )
