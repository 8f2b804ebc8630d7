"""Command-line entry point: capture, browse, edit and export collected words."""

import argparse
import asyncio
import sys
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from wordbox.coordinators import get_router, shutdown_router
from wordbox.core import MANUAL_ENTRY_SOURCE, VocabularyEntry, WordBoxError
from wordbox.io import default_export_filename, export_entries
from wordbox.logging_config import configure_logging
from wordbox.services import SettingsManager


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wordbox",
        description="Personal vocabulary collector.",
    )
    subparsers = parser.add_subparsers(title="commands", dest="command", required=True)

    add = subparsers.add_parser("add", help="Capture a word (or count it again).")
    add.add_argument("word")
    add.add_argument(
        "--source",
        default=MANUAL_ENTRY_SOURCE,
        help="Where the word was seen (URL). Defaults to a manual entry.",
    )
    add.add_argument(
        "--tags",
        default=None,
        help="Comma-separated tags. An empty string clears existing tags.",
    )

    subparsers.add_parser("list", help="List collected words, newest first.")

    edit = subparsers.add_parser("edit", help="Replace one field of a word.")
    edit.add_argument("word_id")
    edit.add_argument("field", choices=["word", "translation", "transcription", "tags"])
    edit.add_argument("value", help="New value; comma-separated for translation and tags.")

    delete = subparsers.add_parser("delete", help="Delete a word.")
    delete.add_argument("word_id")

    export = subparsers.add_parser("export", help="Export all words to CSV.")
    export.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Output file. Defaults to wordbox_dictionary_<date>.csv.",
    )

    return parser


def split_list(text: str) -> List[str]:
    """Split a comma-separated field into trimmed, non-empty items."""
    return [item.strip() for item in text.split(",") if item.strip()]


def build_message(args: argparse.Namespace) -> Dict[str, Any]:
    if args.command == "add":
        message: Dict[str, Any] = {"action": "addWord", "word": args.word, "sourceUrl": args.source}
        if args.tags is not None:
            message["tags"] = split_list(args.tags)
        return message
    if args.command in ("list", "export"):
        return {"action": "getAllWords"}
    if args.command == "edit":
        value: Any = args.value.strip()
        if args.field in ("translation", "tags"):
            value = split_list(args.value)
        elif args.field == "transcription":
            value = value.strip("[]")
        return {"action": "updateWord", "wordId": args.word_id, "field": args.field, "value": value}
    if args.command == "delete":
        return {"action": "deleteWord", "wordId": args.word_id}
    raise ValueError(f"Unknown command: {args.command}")


def format_entry(entry: VocabularyEntry) -> str:
    parts = [entry.word]
    if entry.transcription:
        parts.append(f"[{entry.transcription}]")
    if entry.translation:
        parts.append("- " + ", ".join(entry.translation))
    parts.append(f"(x{entry.count})")
    if entry.tags:
        parts.append("#" + " #".join(entry.tags))
    return " ".join(parts)


def render(args: argparse.Namespace, response: Optional[Dict[str, Any]]) -> int:
    if response is None:
        print("Error: action not handled", file=sys.stderr)
        return 1
    if response["status"] != "success":
        print(f"Error: {response['message']}", file=sys.stderr)
        return 1

    if args.command == "add":
        print(format_entry(VocabularyEntry.from_dict(response["word"])))
    elif args.command == "list":
        entries = [VocabularyEntry.from_dict(w) for w in response["words"]]
        if not entries:
            print("Your vocabulary is empty.")
        for entry in sorted(entries, key=lambda e: e.date_added, reverse=True):
            print(format_entry(entry))
    elif args.command == "export":
        path = Path(args.path) if args.path else Path(default_export_filename(date.today()))
        count = export_entries((VocabularyEntry.from_dict(w) for w in response["words"]), path)
        print(f"Exported {count} words to {path}")
    return 0


async def run(args: argparse.Namespace, settings: SettingsManager) -> int:
    router = get_router(settings)
    try:
        try:
            await router.start()
        except WordBoxError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        response = await router.handle(build_message(args))
        return render(args, response)
    finally:
        await shutdown_router()


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    settings = SettingsManager()
    configure_logging(settings.get_log_level(), settings.get_log_format())
    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
