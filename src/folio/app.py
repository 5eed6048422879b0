"""Folio - e-book reader backend, command line front end."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import asdict
from datetime import datetime
from typing import Optional

from folio.cache.document_cache import DocumentCache
from folio.config import AppConfig, load_config
from folio.errors import ReaderError
from folio.library.database import Database
from folio.service import ReaderService


def _setup_logging(config: AppConfig) -> None:
    root = logging.getLogger("folio")
    for existing in root.handlers:
        if getattr(existing, "baseFilename", None) == os.path.abspath(config.log_path):
            return
    handler = logging.FileHandler(config.log_path, encoding="utf-8")
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    root.setLevel(config.log_level)
    root.addHandler(handler)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="folio", description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("open", help="parse a file and add it to the library")
    p.add_argument("file")
    sub.add_parser("library", help="list library documents")
    p = sub.add_parser("chapters", help="list chapters of a document")
    p.add_argument("document_id")
    p = sub.add_parser("content", help="print the text of a document")
    p.add_argument("key", metavar="ID_OR_PATH")
    p = sub.add_parser("search", help="search a document line by line")
    p.add_argument("document_id")
    p.add_argument("query")
    p = sub.add_parser("progress", help="show or set reading progress")
    p.add_argument("document_id")
    p.add_argument("position", nargs="?", type=int)
    p = sub.add_parser("remove", help="remove a document from the library")
    p.add_argument("document_id")
    sub.add_parser("settings", help="show reader settings")
    return parser


def _fmt_time(ts: float) -> str:
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M")


async def _run(service: ReaderService, args: argparse.Namespace) -> None:
    if args.command == "open":
        doc = await service.open_document(args.file)
        print(f"{doc.id}\t{doc.title}\t{doc.author or '-'}")
        print(f"{doc.file_type}, {doc.total_pages} pages, {len(doc.chapters)} chapters")
    elif args.command == "library":
        for stored in await service.get_library():
            print(
                f"{stored.id}\t{stored.title}\t{stored.author or '-'}\t"
                f"{stored.file_type}\t{_fmt_time(stored.last_read)}"
            )
    elif args.command == "chapters":
        for ch in await service.get_chapters(args.document_id):
            print(f"{ch.start_position:>8} {ch.end_position:>8}  {ch.title}")
    elif args.command == "content":
        print(await service.get_document_content(args.key))
    elif args.command == "search":
        for line_num, line in await service.search_in_document(
            args.document_id, args.query
        ):
            print(f"{line_num}: {line}")
    elif args.command == "progress":
        if args.position is not None:
            await service.update_reading_progress(args.document_id, args.position)
        progress = await service.get_reading_progress(args.document_id)
        print(f"{progress.position} ({progress.percentage:.1f}%)")
    elif args.command == "remove":
        removed = await service.delete_document(args.document_id)
        print("removed" if removed else "not in library")
    elif args.command == "settings":
        for key, value in asdict(await service.get_settings()).items():
            print(f"{key} = {value}")


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    config = load_config()
    _setup_logging(config)

    db = Database(config.db_path)
    service = ReaderService(db, DocumentCache(config.cache_capacity))
    try:
        asyncio.run(_run(service, args))
    except ReaderError as e:
        logging.getLogger("folio").error("%s failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
