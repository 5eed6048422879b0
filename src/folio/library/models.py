"""Data models for parsed documents and the library."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Chapter:
    """A contiguous slice of a document's content."""

    id: str  # "{resource_id}_{index}"
    title: str
    start_position: int
    end_position: int  # exclusive


@dataclass
class Document:
    """Full parsed document."""

    id: str
    title: str
    file_path: str
    file_type: str  # epub, pdf, txt
    content: str = ""
    author: Optional[str] = None
    current_position: int = 0
    total_pages: int = 1
    chapters: list[Chapter] = field(default_factory=list)
    cover_image: Optional[str] = None  # data:<mime>;base64,...

    def chapter_text(self, chapter: Chapter) -> str:
        return self.content[chapter.start_position : chapter.end_position]


@dataclass
class StoredDocument:
    id: str
    title: str
    file_path: str
    file_type: str
    author: Optional[str] = None
    total_pages: int = 0
    current_position: int = 0  # saved reading progress
    last_read: float = field(default_factory=time.time)
    added_date: float = field(default_factory=time.time)

    @classmethod
    def from_document(
        cls,
        document: Document,
        current_position: int = 0,
        added_date: Optional[float] = None,
    ) -> StoredDocument:
        now = time.time()
        return cls(
            id=document.id,
            title=document.title,
            author=document.author,
            file_path=document.file_path,
            file_type=document.file_type,
            total_pages=document.total_pages,
            current_position=current_position,
            last_read=now,
            added_date=added_date if added_date is not None else now,
        )


@dataclass
class ReadingProgress:
    document_id: str
    position: int = 0
    percentage: float = 0.0  # 0.0 - 100.0, derived from content length

    @classmethod
    def for_content(
        cls, document_id: str, position: int, content_length: int
    ) -> ReadingProgress:
        if content_length <= 0:
            return cls(document_id=document_id, position=position)
        pct = position / content_length * 100.0
        return cls(
            document_id=document_id,
            position=position,
            percentage=min(100.0, max(0.0, pct)),
        )


@dataclass
class UserSettings:
    theme: str = "light"
    font_family: str = "georgia"
    font_size: int = 18
    line_height: float = 1.6
    letter_spacing: float = 0.0
    words_per_page: int = 400
    page_margin: str = "normal"
    justify_text: bool = True
    hyphenation: bool = True
    animation_speed: str = "normal"
    page_curl: bool = True
