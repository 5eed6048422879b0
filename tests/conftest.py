"""Shared fixtures for tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

import pytest

from folio.cache.document_cache import DocumentCache
from folio.config import AppConfig
from folio.library.database import Database
from folio.service import ReaderService


def write_epub(
    path: Path,
    bodies: list[str],
    title: Optional[str] = "Test Book",
    author: Optional[str] = "Test Author",
    cover: Optional[bytes] = None,
) -> Path:
    """Write an EPUB whose spine holds one XHTML file per body, ids ch1..chN."""
    from ebooklib import epub

    book = epub.EpubBook()
    book.set_identifier("test123")
    if title:
        book.set_title(title)
    book.set_language("en")
    if author:
        book.add_author(author)
    if cover is not None:
        book.set_cover("cover.png", cover, create_page=False)

    items = []
    for i, body in enumerate(bodies, start=1):
        item = epub.EpubHtml(
            uid=f"ch{i}", title=f"Part {i}", file_name=f"ch{i}.xhtml", lang="en"
        )
        item.content = f"<html><body>{body}</body></html>"
        book.add_item(item)
        items.append(item)

    book.toc = [epub.Link(it.file_name, it.title, it.id) for it in items]
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())
    book.spine = items

    epub.write_epub(str(path), book)
    return path


def write_pdf(
    path: Path, pages: list[str], metadata: Optional[dict] = None
) -> Path:
    import pymupdf

    doc = pymupdf.open()
    for text in pages:
        page = doc.new_page()
        y = 72
        for line in text.split("\n"):
            page.insert_text((72, y), line, fontsize=12)
            y += 20
    if metadata:
        doc.set_metadata(metadata)
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def db(tmp_path: Path) -> Database:
    db_path = tmp_path / "test.db"
    database = Database(db_path)
    yield database
    database.close()


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        data_dir=tmp_path / "data",
        config_dir=tmp_path / "config",
    )


@pytest.fixture
def service(db: Database) -> ReaderService:
    return ReaderService(db, DocumentCache(capacity=5))


@pytest.fixture
def epub_factory(tmp_path: Path) -> Callable[..., Path]:
    def _make(name: str, bodies: list[str], **kwargs) -> Path:
        return write_epub(tmp_path / name, bodies, **kwargs)

    return _make


@pytest.fixture
def pdf_factory(tmp_path: Path) -> Callable[..., Path]:
    def _make(name: str, pages: list[str], metadata: Optional[dict] = None) -> Path:
        return write_pdf(tmp_path / name, pages, metadata)

    return _make


@pytest.fixture
def sample_epub(tmp_path: Path) -> Path:
    return write_epub(
        tmp_path / "book.epub",
        [
            "<h1>Intro</h1><p>First paragraph.</p><p>Second paragraph.</p>",
            "<p>Chapter two content without a heading.</p>",
            "<h2>Sub <em>heading</em></h2><p>Closing words.</p>",
        ],
    )


@pytest.fixture
def make_txt(tmp_path: Path) -> Callable[[str, str], Path]:
    def _make(name: str, text: str) -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _make


@pytest.fixture
def clean_env(tmp_path: Path, monkeypatch) -> Path:
    """Isolate FOLIO_*/XDG variables, including ones load_dotenv sets later."""
    for name in (
        "FOLIO_DATA_DIR",
        "FOLIO_CONFIG_DIR",
        "FOLIO_CACHE_CAPACITY",
        "FOLIO_LOG_LEVEL",
    ):
        # setenv first so teardown removes values written behind monkeypatch's back
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.chdir(tmp_path)
    return tmp_path
