"""End-to-end tests: the CLI drives the router, store and exporter together."""

import csv
import sqlite3

import pytest

from wordbox import main as main_module
from wordbox.main import build_message, main, split_list


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Point the CLI at a temp database with no lookup key and no .env."""
    db_path = tmp_path / "data" / "wordbox.db"
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("WORDBOX_DB_PATH", str(db_path))
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setattr(main_module, "configure_logging", lambda level, fmt: None)
    return db_path


def test_capture_list_edit_delete(cli_env, capsys):
    assert main(["add", "Cat", "--source", "https://a.example"]) == 0
    assert main(["add", "cat", "--source", "https://a.example"]) == 0
    assert main(["add", "CAT", "--source", "https://b.example", "--tags", "pets, a1"]) == 0
    capsys.readouterr()

    assert main(["list"]) == 0
    out = capsys.readouterr().out
    assert "Cat (x3) #pets #a1" in out

    assert main(["edit", "cat", "translation", "кот, кошка"]) == 0
    assert main(["edit", "cat", "transcription", "[kæt]"]) == 0
    capsys.readouterr()
    main(["list"])
    assert "Cat [kæt] - кот, кошка (x3)" in capsys.readouterr().out

    assert main(["delete", "cat"]) == 0
    assert main(["delete", "cat"]) == 0
    capsys.readouterr()
    main(["list"])
    assert "Your vocabulary is empty." in capsys.readouterr().out


def test_edit_missing_word_fails(cli_env, capsys):
    assert main(["edit", "ghost", "tags", "x"]) == 1
    assert "ghost" in capsys.readouterr().err


def test_export_writes_csv(cli_env, tmp_path, capsys):
    main(["add", "Owl", "--source", "https://a.example"])
    main(["add", "Fox"])
    out_path = tmp_path / "export.csv"

    assert main(["export", str(out_path)]) == 0

    assert "Exported 2 words" in capsys.readouterr().out
    with out_path.open(encoding="utf-8", newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0][0] == "word"
    assert {row[0] for row in rows[1:]} == {"Owl", "Fox"}
    fox = next(row for row in rows[1:] if row[0] == "Fox")
    assert fox[5] == "manual_entry"


def test_old_database_is_upgraded_on_first_use(cli_env, capsys):
    cli_env.parent.mkdir(parents=True)
    conn = sqlite3.connect(cli_env)
    conn.execute(
        """
        CREATE TABLE words (
            id TEXT PRIMARY KEY, word TEXT NOT NULL, translation TEXT NOT NULL,
            transcription TEXT NOT NULL, date_added TEXT NOT NULL,
            date_last_seen TEXT NOT NULL, sources TEXT NOT NULL, count INTEGER NOT NULL
        )
        """
    )
    conn.execute(
        "INSERT INTO words VALUES ('hat', 'hat', '[\"шляпа\"]', '', "
        "'2023-01-01T00:00:00.000Z', '2023-01-01T00:00:00.000Z', '[\"https://old.example\"]', 4)"
    )
    conn.execute("PRAGMA user_version = 3")
    conn.commit()
    conn.close()

    assert main(["add", "Hat", "--source", "https://new.example"]) == 0

    out = capsys.readouterr().out
    assert "hat - шляпа (x5)" in out


def test_build_message_for_tags_distinguishes_absent_and_empty():
    parser = main_module._build_arg_parser()

    absent = build_message(parser.parse_args(["add", "cat"]))
    empty = build_message(parser.parse_args(["add", "cat", "--tags", ""]))

    assert "tags" not in absent
    assert empty["tags"] == []


def test_split_list_drops_blank_items():
    assert split_list(" a, ,b ,, c") == ["a", "b", "c"]
