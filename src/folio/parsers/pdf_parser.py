"""PDF parser using PyMuPDF."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pymupdf

from folio.errors import OpenError
from folio.library.models import Document

from .base import UNKNOWN_TITLE, BaseParser, new_document_id

log = logging.getLogger(__name__)


class PdfParser(BaseParser):
    SUPPORTED_EXTENSIONS = (".pdf",)

    def parse(self, file_path: Path) -> Document:
        try:
            doc = pymupdf.open(str(file_path))
        except Exception as e:
            raise OpenError(f"Failed to open PDF {file_path}: {e}") from e

        try:
            title = self._get_meta(doc, "title") or UNKNOWN_TITLE
            author = self._get_meta(doc, "author")
            page_count = doc.page_count
            raw = self._extract_text(doc)
        finally:
            doc.close()

        return Document(
            id=new_document_id(),
            title=title,
            author=author,
            file_path=str(file_path),
            file_type="pdf",
            content=self._normalize(raw),
            total_pages=page_count,
        )

    @staticmethod
    def _get_meta(doc: pymupdf.Document, field: str) -> Optional[str]:
        try:
            value = (doc.metadata or {}).get(field)
        except Exception as e:
            log.debug("Unreadable PDF metadata %s: %s", field, e)
            return None
        if not isinstance(value, str):
            return None
        return value.strip() or None

    @staticmethod
    def _extract_text(doc: pymupdf.Document) -> str:
        parts: list[str] = []
        for page_num in range(doc.page_count):
            try:
                text = doc[page_num].get_text()
            except Exception as e:
                log.debug("Skipping PDF page %d: %s", page_num + 1, e)
                continue
            parts.append(text)
            parts.append("\n\n")
        return "".join(parts)

    @staticmethod
    def _normalize(text: str) -> str:
        """Trim every line and drop blank ones; paragraph breaks collapse to one newline."""
        lines = (line.strip() for line in text.splitlines())
        return "\n".join(line for line in lines if line)
