"""EPUB parser using ebooklib."""

from __future__ import annotations

import base64
import logging
from pathlib import Path
from typing import Optional

import ebooklib
from ebooklib import epub

from folio.errors import OpenError
from folio.library.models import Chapter, Document

from .base import UNKNOWN_TITLE, BaseParser, estimate_pages, new_document_id
from .markup import chapter_title, strip_markup

log = logging.getLogger(__name__)

CHAPTER_SEPARATOR = "\n\n"


class _LenientReader(epub.EpubReader):
    """EpubReader that tolerates manifest entries missing from the archive.

    Such items are loaded with ``content`` set to None instead of failing the
    whole book.
    """

    def __init__(self, epub_file_name, options=None):
        super().__init__(epub_file_name, options)
        self._in_manifest = False

    def _load_manifest(self):
        self._in_manifest = True
        try:
            super()._load_manifest()
        finally:
            self._in_manifest = False

    def read_file(self, name):
        try:
            return super().read_file(name)
        except KeyError:
            if not self._in_manifest:
                raise
            log.debug("Manifest file %s is missing from the archive", name)
            return None


def read_epub(file_path: Path) -> epub.EpubBook:
    reader = _LenientReader(str(file_path), {"ignore_ncx": True})
    book = reader.load()
    reader.process()
    return book


class EpubParser(BaseParser):
    SUPPORTED_EXTENSIONS = (".epub",)

    def parse(self, file_path: Path) -> Document:
        try:
            book = read_epub(file_path)
        except Exception as e:
            raise OpenError(f"Failed to open EPUB {file_path}: {e}") from e

        title = self._get_meta(book, "title") or UNKNOWN_TITLE
        author = self._get_meta(book, "creator") or None

        content = ""
        chapters: list[Chapter] = []

        for index, idref in enumerate(self._spine_ids(book)):
            markup = self._resource_markup(book, idref)
            if markup is None:
                continue

            start = len(content)
            content += strip_markup(markup) + CHAPTER_SEPARATOR
            chapters.append(
                Chapter(
                    id=f"{idref}_{index}",
                    title=chapter_title(markup, index + 1),
                    start_position=start,
                    end_position=len(content),
                )
            )

        return Document(
            id=new_document_id(),
            title=title,
            author=author,
            file_path=str(file_path),
            file_type="epub",
            content=content,
            total_pages=estimate_pages(content),
            chapters=chapters,
            cover_image=self._extract_cover(book),
        )

    @staticmethod
    def _spine_ids(book: epub.EpubBook) -> list[str]:
        ids = []
        for entry in book.spine:
            # Spine entries are (idref, linear) when read from disk.
            idref = entry[0] if isinstance(entry, tuple) else entry
            if isinstance(idref, str):
                ids.append(idref)
        return ids

    @staticmethod
    def _resource_markup(book: epub.EpubBook, idref: str) -> Optional[str]:
        item = book.get_item_with_id(idref)
        if item is None:
            log.debug("Skipping spine entry %s: no such resource", idref)
            return None
        if item.content is None:
            log.debug("Skipping spine entry %s: %s not in archive", idref, item.get_name())
            return None
        try:
            return item.get_content().decode("utf-8")
        except UnicodeDecodeError as e:
            log.debug("Skipping spine entry %s: %s", idref, e)
            return None

    def _extract_cover(self, book: epub.EpubBook) -> Optional[str]:
        item = self._find_cover_item(book)
        if item is None:
            return None
        data = item.get_content()
        if not data:
            return None
        encoded = base64.b64encode(data).decode("ascii")
        return f"data:{sniff_image_mime(data)};base64,{encoded}"

    @staticmethod
    def _find_cover_item(book: epub.EpubBook) -> Optional[epub.EpubItem]:
        for item in book.get_items_of_type(ebooklib.ITEM_COVER):
            if (item.media_type or "").startswith("image/"):
                return item

        # EPUB2 <meta name="cover" content="item-id"/>. ebooklib files it
        # under "meta" with the name in its attributes; also accept "cover".
        metas = [attrs or {} for _, attrs in _metadata(book, "OPF", "meta")]
        metas = [a for a in metas if a.get("name") == "cover"]
        metas += [attrs or {} for _, attrs in _metadata(book, "OPF", "cover")]
        for attrs in metas:
            cover_id = attrs.get("content")
            item = book.get_item_with_id(cover_id) if cover_id else None
            if item is not None and item.content:
                return item

        for item in book.get_items_of_type(ebooklib.ITEM_IMAGE):
            name = f"{item.get_id() or ''} {item.get_name() or ''}".lower()
            if "cover" in name:
                return item
        return None

    @staticmethod
    def _get_meta(book: epub.EpubBook, field: str) -> str:
        values = _metadata(book, "DC", field)
        if values:
            val = values[0]
            if isinstance(val, tuple):
                return str(val[0]) if val[0] else ""
            return str(val)
        return ""


def _metadata(book: epub.EpubBook, namespace: str, name: str) -> list:
    """Metadata entries for a name; a namespace the book lacks yields []."""
    uri = epub.NAMESPACES.get(namespace, namespace)
    return book.metadata.get(uri, {}).get(name, [])


def sniff_image_mime(data: bytes) -> str:
    """Guess an image mime type from magic bytes, defaulting to JPEG."""
    if data.startswith(b"\x89PNG"):
        return "image/png"
    if data.startswith(b"\xff\xd8"):
        return "image/jpeg"
    if data.startswith(b"WEBP") or (data.startswith(b"RIFF") and data[8:12] == b"WEBP"):
        return "image/webp"
    return "image/jpeg"
