"""Tests for versioned schema upgrades."""

import json
import sqlite3

import pytest

from wordbox.core import MigrationFailed
from wordbox.io import TARGET_SCHEMA_VERSION, SchemaMigrator


@pytest.fixture
def connection(tmp_path):
    conn = sqlite3.connect(tmp_path / "words.db", isolation_level=None)
    conn.row_factory = sqlite3.Row
    yield conn
    conn.close()


def create_v3_database(conn):
    """Shape of a store written before tags existed."""
    conn.execute(
        """
        CREATE TABLE words (
            id TEXT PRIMARY KEY,
            word TEXT NOT NULL,
            translation TEXT NOT NULL DEFAULT '[]',
            transcription TEXT NOT NULL DEFAULT '',
            date_added TEXT NOT NULL,
            date_last_seen TEXT NOT NULL,
            sources TEXT NOT NULL DEFAULT '[]',
            count INTEGER NOT NULL DEFAULT 1
        )
        """
    )
    conn.execute("CREATE TABLE translation_dictionary (word TEXT, translation TEXT)")
    rows = [
        ("cat", "Cat", '["кот"]', "kæt", "2024-01-01T00:00:00.000Z", "2024-01-02T00:00:00.000Z", '["a"]', 2),
        ("dog", "dog", "[]", "", "2024-01-03T00:00:00.000Z", "2024-01-03T00:00:00.000Z", '["b"]', 1),
    ]
    conn.executemany("INSERT INTO words VALUES (?, ?, ?, ?, ?, ?, ?, ?)", rows)
    conn.execute("PRAGMA user_version = 3")


def table_names(conn):
    cur = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    return {row["name"] for row in cur.fetchall()}


def all_rows(conn):
    cur = conn.execute("SELECT * FROM words ORDER BY id")
    return [tuple(row) for row in cur.fetchall()]


def test_fresh_database_is_created_at_target_version(connection):
    version = SchemaMigrator(connection).migrate()

    assert version == TARGET_SCHEMA_VERSION
    assert SchemaMigrator(connection).current_version() == TARGET_SCHEMA_VERSION
    assert "words" in table_names(connection)


def test_current_version_runs_nothing(connection):
    SchemaMigrator(connection).migrate()
    connection.execute("CREATE TABLE translation_dictionary (x TEXT)")

    SchemaMigrator(connection).migrate()

    # Steps only run on a version bump, so the table is untouched.
    assert "translation_dictionary" in table_names(connection)


def test_upgrade_from_v3_backfills_tags_and_drops_old_table(connection):
    create_v3_database(connection)

    SchemaMigrator(connection).migrate()

    assert "translation_dictionary" not in table_names(connection)
    cur = connection.execute("SELECT id, tags, count, translation FROM words ORDER BY id")
    rows = cur.fetchall()
    assert [json.loads(row["tags"]) for row in rows] == [[], []]
    assert rows[0]["count"] == 2
    assert json.loads(rows[0]["translation"]) == ["кот"]


def test_backfill_keeps_existing_tags(connection):
    create_v3_database(connection)
    connection.execute("ALTER TABLE words ADD COLUMN tags TEXT")
    connection.execute("UPDATE words SET tags = '[\"pets\"]' WHERE id = 'cat'")

    SchemaMigrator(connection).migrate()

    cur = connection.execute("SELECT id, tags FROM words ORDER BY id")
    assert {row["id"]: json.loads(row["tags"]) for row in cur.fetchall()} == {
        "cat": ["pets"],
        "dog": [],
    }


def test_backfill_is_idempotent(connection):
    create_v3_database(connection)
    migrator = SchemaMigrator(connection)
    migrator.migrate()
    once = all_rows(connection)

    # Simulate an interrupted upgrade being re-run from the start of the scan.
    migrator.backfill_tags()
    migrator.ensure_words_table()
    migrator.drop_obsolete_tables()

    assert all_rows(connection) == once


def test_failed_step_rolls_back_and_keeps_version(connection, monkeypatch):
    create_v3_database(connection)
    migrator = SchemaMigrator(connection)

    def broken_backfill():
        connection.execute("UPDATE words SET count = 99 WHERE id = 'cat'")
        raise sqlite3.OperationalError("disk I/O error")

    migrator._steps[-1] = (4, broken_backfill)

    with pytest.raises(MigrationFailed, match="disk I/O error"):
        migrator.migrate()

    assert migrator.current_version() == 3
    # The dropped table and the added column were rolled back with everything else.
    assert "translation_dictionary" in table_names(connection)
    columns = [row[1] for row in connection.execute("PRAGMA table_info(words)")]
    assert "tags" not in columns
    assert connection.execute("SELECT count FROM words WHERE id = 'cat'").fetchone()[0] == 2


def test_newer_database_is_refused(connection):
    connection.execute(f"PRAGMA user_version = {TARGET_SCHEMA_VERSION + 1}")

    with pytest.raises(MigrationFailed, match="newer"):
        SchemaMigrator(connection).migrate()


def test_iter_rows_is_lazy_and_finite(connection):
    create_v3_database(connection)
    rows = SchemaMigrator(connection).iter_rows("SELECT id FROM words ORDER BY id")

    assert next(rows)["id"] == "cat"
    assert [row["id"] for row in rows] == ["dog"]
    assert list(rows) == []
