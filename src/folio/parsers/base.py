"""Base parser interface and extension-based dispatch."""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from pathlib import Path

from folio.errors import UnsupportedFormat
from folio.library.models import Document

WORDS_PER_PAGE = 500
UNKNOWN_TITLE = "Unknown Title"


class BaseParser(ABC):
    """Abstract base for format-specific parsers."""

    SUPPORTED_EXTENSIONS: tuple[str, ...] = ()

    @abstractmethod
    def parse(self, file_path: Path) -> Document:
        """Parse a file and return the normalized document."""

    @classmethod
    def can_handle(cls, file_path: Path) -> bool:
        return file_path.suffix.lower() in cls.SUPPORTED_EXTENSIONS


def estimate_pages(text: str) -> int:
    """Whitespace-delimited word count / WORDS_PER_PAGE, floored, at least 1."""
    return max(1, len(text.split()) // WORDS_PER_PAGE)


def new_document_id() -> str:
    return str(uuid.uuid4())


def get_parser(file_path: Path) -> BaseParser:
    """Return the appropriate parser for a file."""
    from folio.parsers.epub_parser import EpubParser
    from folio.parsers.pdf_parser import PdfParser
    from folio.parsers.txt_parser import TxtParser

    parsers: list[type[BaseParser]] = [EpubParser, PdfParser, TxtParser]
    for parser_cls in parsers:
        if parser_cls.can_handle(file_path):
            return parser_cls()

    supported = []
    for p in parsers:
        supported.extend(p.SUPPORTED_EXTENSIONS)
    raise UnsupportedFormat(
        f"Unsupported format: {file_path.suffix or '(none)'}. "
        f"Supported: {', '.join(supported)}"
    )


def parse_document(file_path: Path) -> Document:
    file_path = Path(file_path)
    return get_parser(file_path).parse(file_path)
