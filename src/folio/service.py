"""Reader service: cache-then-parse resolution behind the front-end commands."""

from __future__ import annotations

import asyncio
import copy
import logging
import sqlite3
from pathlib import Path
from typing import Awaitable, Callable, Hashable

from folio.cache.document_cache import DocumentCache
from folio.errors import CacheWriteFailure, DocumentNotFound
from folio.library.database import Database
from folio.library.models import (
    Chapter,
    Document,
    ReadingProgress,
    StoredDocument,
    UserSettings,
)
from folio.parsers.base import parse_document

log = logging.getLogger(__name__)


def resolve_path(file_path: str) -> str:
    """Absolute form of a path, the key a file is known by in the library."""
    return str(Path(file_path).expanduser().resolve())


def search_lines(content: str, query: str) -> list[tuple[int, str]]:
    """Case-insensitive substring search, one hit per matching line (0-based)."""
    lines = content.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    needle = query.lower()
    results: list[tuple[int, str]] = []
    for line_num, line in enumerate(lines):
        line = line.removesuffix("\r")
        if needle in line.lower():
            results.append((line_num, line))
    return results


class ReaderService:
    """Front-end operations over the library database and both cache tiers.

    Lookups go memory cache -> persistent chapter cache -> parse. Concurrent
    requests for the same document share one parse.
    """

    def __init__(self, db: Database, cache: DocumentCache) -> None:
        self._db = db
        self._cache = cache
        self._inflight: dict[Hashable, asyncio.Future] = {}

    @property
    def cache(self) -> DocumentCache:
        return self._cache

    # ── Library ────────────────────────────────────────────

    async def open_document(self, file_path: str) -> Document:
        path = resolve_path(file_path)
        document = await self._single_flight(
            path, lambda: self._load(path, register=True)
        )
        self._register(document)
        return copy.deepcopy(document)

    def _register(self, document: Document) -> None:
        """Upsert the library row, keeping an existing row's position and added date."""
        existing = self._db.get_document_by_path(document.file_path)
        if existing:
            stored = StoredDocument.from_document(
                document,
                current_position=existing.current_position,
                added_date=existing.added_date,
            )
        else:
            stored = StoredDocument.from_document(document)
        self._db.save_document(stored)

    async def get_library(self) -> list[StoredDocument]:
        return self._db.list_documents()

    async def delete_document(self, document_id: str) -> bool:
        self._cache.clear(document_id)
        self._db.clear_chapter_cache(document_id)
        return self._db.delete_document(document_id)

    async def update_reading_progress(self, document_id: str, position: int) -> None:
        if not self._db.update_reading_progress(document_id, position):
            raise DocumentNotFound(f"Document not found: {document_id}")
        self._cache.update_position(document_id, position)

    async def get_reading_progress(self, document_id: str) -> ReadingProgress:
        stored = self._require(document_id)
        document = await self._resolve(stored)
        return ReadingProgress.for_content(
            document_id, stored.current_position, len(document.content)
        )

    async def get_settings(self) -> UserSettings:
        return self._db.get_settings()

    async def save_settings(self, settings: UserSettings) -> None:
        self._db.save_settings(settings)

    # ── Content ────────────────────────────────────────────

    async def get_chapters(self, document_id: str) -> list[Chapter]:
        cached = self._cache.get(document_id)
        if cached is not None:
            log.debug("Chapters for %s served from memory", document_id)
            return cached.chapters

        try:
            chapters = self._db.get_cached_chapters(document_id)
        except sqlite3.Error as e:
            log.warning("Chapter cache lookup failed for %s: %s", document_id, e)
            chapters = None
        if chapters:
            log.debug("Chapters for %s served from chapter cache", document_id)
            return chapters

        document = await self._resolve(self._require(document_id))
        return document.chapters

    async def get_document_content(self, key: str) -> str:
        """Content by library id or file path; unknown paths are parsed uncached."""
        stored = self._db.get_document(key) or self._db.get_document_by_path(
            resolve_path(key)
        )
        if stored is None:
            log.debug("%s is not in the library, parsing without caching", key)
            return (await self._parse(resolve_path(key))).content
        return (await self._resolve(stored)).content

    async def search_in_document(
        self, document_id: str, query: str
    ) -> list[tuple[int, str]]:
        document = await self._resolve(self._require(document_id))
        return search_lines(document.content, query)

    # ── Resolution ─────────────────────────────────────────

    def _require(self, document_id: str) -> StoredDocument:
        stored = self._db.get_document(document_id)
        if stored is None:
            raise DocumentNotFound(f"Document not found: {document_id}")
        return stored

    async def _resolve(self, stored: StoredDocument) -> Document:
        cached = self._cache.get(stored.id)
        if cached is not None:
            log.debug("Document %s served from memory", stored.id)
            return cached
        document = await self._single_flight(
            stored.file_path, lambda: self._load(stored.file_path)
        )
        return copy.deepcopy(document)

    async def _load(self, file_path: str, register: bool = False) -> Document:
        """Parse a file once for every concurrent open or lookup of it.

        A parse of a file already in the library takes over that row's id and
        position. With ``register`` a new file gets its library row before the
        chapter index is written, since chapter rows reference it.
        """
        document = await self._parse(file_path)
        existing = self._db.get_document_by_path(file_path)
        if existing:
            document.id = existing.id
            document.current_position = existing.current_position
        elif register:
            self._register(document)
        self._remember(document)
        return document

    async def _parse(self, file_path: str) -> Document:
        log.info("Parsing %s", file_path)
        return await asyncio.to_thread(parse_document, Path(file_path))

    def _remember(self, document: Document) -> None:
        self._cache.set(document)
        if not document.chapters:
            return
        try:
            self._db.save_chapters(document.id, document.chapters)
        except CacheWriteFailure as e:
            log.warning("%s", e)
        else:
            log.debug("Cached %d chapters for %s", len(document.chapters), document.id)

    async def _single_flight(
        self, key: Hashable, factory: Callable[[], Awaitable[Document]]
    ) -> Document:
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._inflight[key] = task
            task.add_done_callback(lambda _t: self._inflight.pop(key, None))
        else:
            log.debug("Joining in-flight parse for %s", key)
        return await asyncio.shield(task)
