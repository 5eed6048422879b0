"""Plain text parser."""

from __future__ import annotations

from pathlib import Path

from folio.errors import ReadError
from folio.library.models import Document

from .base import UNKNOWN_TITLE, BaseParser, estimate_pages, new_document_id


class TxtParser(BaseParser):
    SUPPORTED_EXTENSIONS = (".txt",)

    def parse(self, file_path: Path) -> Document:
        try:
            text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(f"Failed to read text file {file_path}: {e}") from e

        return Document(
            id=new_document_id(),
            title=file_path.stem or UNKNOWN_TITLE,
            file_path=str(file_path),
            file_type="txt",
            content=text,
            total_pages=estimate_pages(text),
        )
