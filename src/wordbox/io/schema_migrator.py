"""Versioned, idempotent schema upgrades for the vocabulary database."""

import sqlite3
from typing import Callable, Iterator, List, Optional, Tuple

import structlog

from wordbox.core import MigrationFailed
from wordbox.io.sqlite_transaction import transaction

logger = structlog.get_logger()

TARGET_SCHEMA_VERSION = 4
WORDS_TABLE = "words"
OBSOLETE_TABLES = ("translation_dictionary",)


class SchemaMigrator:
    """Brings a database up to ``target_version`` before the store uses it.

    The schema version lives in ``PRAGMA user_version``. Steps registered with
    ``None`` run on every upgrade; versioned steps run when the stored version
    is below their version. All steps of one upgrade share a single
    transaction and the new version is stamped last, so an interrupted upgrade
    leaves the old version in place and is simply run again on the next open.
    """

    def __init__(
        self,
        connection: sqlite3.Connection,
        target_version: int = TARGET_SCHEMA_VERSION,
    ) -> None:
        self.connection = connection
        self.target_version = target_version
        self._steps: List[Tuple[Optional[int], Callable[[], None]]] = [
            (None, self.ensure_words_table),
            (None, self.drop_obsolete_tables),
            (4, self.backfill_tags),
        ]

    def current_version(self) -> int:
        return self.connection.execute("PRAGMA user_version").fetchone()[0]

    def migrate(self) -> int:
        """Run pending steps and return the version the database ends on.

        Raises:
            MigrationFailed: If the stored version is newer than the target or
                any step hits an engine error. Nothing is committed in that case.
        """
        try:
            stored = self.current_version()
        except sqlite3.Error as e:
            raise MigrationFailed(f"Cannot read schema version: {e}") from e

        if stored == self.target_version:
            return stored
        if stored > self.target_version:
            raise MigrationFailed(
                f"Database schema version {stored} is newer than supported "
                f"version {self.target_version}"
            )

        logger.info(
            "schema_upgrade_started",
            from_version=stored,
            to_version=self.target_version,
        )
        try:
            with transaction(self.connection):
                for introduced_in, step in self._steps:
                    if introduced_in is None or stored < introduced_in <= self.target_version:
                        step()
                # PRAGMA does not accept bound parameters.
                self.connection.execute(f"PRAGMA user_version = {int(self.target_version)}")
        except sqlite3.Error as e:
            logger.error("schema_upgrade_failed", from_version=stored, error=str(e))
            raise MigrationFailed(
                f"Schema upgrade {stored} -> {self.target_version} failed: {e}"
            ) from e

        logger.info("schema_upgrade_finished", version=self.target_version)
        return self.target_version

    def ensure_words_table(self) -> None:
        self.connection.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {WORDS_TABLE} (
                id TEXT PRIMARY KEY,
                word TEXT NOT NULL,
                translation TEXT NOT NULL DEFAULT '[]',
                transcription TEXT NOT NULL DEFAULT '',
                date_added TEXT NOT NULL,
                date_last_seen TEXT NOT NULL,
                sources TEXT NOT NULL DEFAULT '[]',
                count INTEGER NOT NULL DEFAULT 1,
                tags TEXT
            );
            """
        )

    def drop_obsolete_tables(self) -> None:
        for table in OBSOLETE_TABLES:
            if self._table_exists(table):
                self.connection.execute(f"DROP TABLE {table}")
                logger.info("schema_table_dropped", table=table)

    def backfill_tags(self) -> None:
        """Give every existing row an empty tag list where it has none.

        Rows that already carry tags are left alone, so re-running the scan
        from the start after an interruption changes nothing twice.
        """
        if "tags" not in self._column_names(WORDS_TABLE):
            self.connection.execute(f"ALTER TABLE {WORDS_TABLE} ADD COLUMN tags TEXT")

        updated = 0
        for row in self.iter_rows(f"SELECT id, tags FROM {WORDS_TABLE}"):
            if row["tags"] is not None:
                continue
            self.connection.execute(
                f"UPDATE {WORDS_TABLE} SET tags = '[]' WHERE id = ?", (row["id"],)
            )
            updated += 1
        logger.info("schema_tags_backfilled", updated=updated)

    def iter_rows(self, query: str) -> Iterator[sqlite3.Row]:
        """Lazily yield rows of ``query``; finite and not restartable."""
        cur = self.connection.cursor()
        cur.row_factory = sqlite3.Row
        cur.execute(query)
        while True:
            row = cur.fetchone()
            if row is None:
                return
            yield row

    def _table_exists(self, name: str) -> bool:
        cur = self.connection.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (name,)
        )
        return cur.fetchone() is not None

    def _column_names(self, table: str) -> List[str]:
        cur = self.connection.execute(f"PRAGMA table_info({table})")
        return [row[1] for row in cur.fetchall()]
