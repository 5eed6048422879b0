"""SQLite database for the library, the chapter index cache, and user settings."""

from __future__ import annotations

import sqlite3
import time
from dataclasses import asdict, fields
from pathlib import Path
from typing import Optional

from folio.errors import CacheWriteFailure

from .models import Chapter, StoredDocument, UserSettings

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    author TEXT,
    file_path TEXT UNIQUE NOT NULL,
    file_type TEXT NOT NULL,
    total_pages INTEGER NOT NULL DEFAULT 0,
    current_position INTEGER NOT NULL DEFAULT 0,
    last_read REAL NOT NULL,
    added_date REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS chapters (
    id TEXT NOT NULL,
    document_id TEXT NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    title TEXT NOT NULL,
    start_position INTEGER NOT NULL,
    end_position INTEGER NOT NULL,
    chapter_order INTEGER NOT NULL,
    created_at REAL NOT NULL,
    PRIMARY KEY (document_id, id)
);

CREATE INDEX IF NOT EXISTS idx_chapters_document_id ON chapters (document_id);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    theme TEXT NOT NULL DEFAULT 'light',
    font_family TEXT NOT NULL DEFAULT 'georgia',
    font_size INTEGER NOT NULL DEFAULT 18,
    line_height REAL NOT NULL DEFAULT 1.6,
    letter_spacing REAL NOT NULL DEFAULT 0.0,
    words_per_page INTEGER NOT NULL DEFAULT 400,
    page_margin TEXT NOT NULL DEFAULT 'normal',
    justify_text INTEGER NOT NULL DEFAULT 1,
    hyphenation INTEGER NOT NULL DEFAULT 1,
    animation_speed TEXT NOT NULL DEFAULT 'normal',
    page_curl INTEGER NOT NULL DEFAULT 1
);
"""

_BOOL_SETTINGS = ("justify_text", "hyphenation", "page_curl")


class Database:
    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._init_schema()

    def _init_schema(self) -> None:
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    # ── Documents ──────────────────────────────────────────

    def save_document(self, doc: StoredDocument) -> None:
        self._conn.execute(
            """INSERT INTO documents
               (id, title, author, file_path, file_type, total_pages, current_position, last_read, added_date)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   title = excluded.title,
                   author = excluded.author,
                   file_path = excluded.file_path,
                   file_type = excluded.file_type,
                   total_pages = excluded.total_pages,
                   current_position = excluded.current_position,
                   last_read = excluded.last_read,
                   added_date = excluded.added_date""",
            (
                doc.id,
                doc.title,
                doc.author,
                doc.file_path,
                doc.file_type,
                doc.total_pages,
                doc.current_position,
                doc.last_read,
                doc.added_date,
            ),
        )
        self._conn.commit()

    def get_document(self, document_id: str) -> Optional[StoredDocument]:
        row = self._conn.execute(
            "SELECT * FROM documents WHERE id = ?", (document_id,)
        ).fetchone()
        return self._row_to_document(row) if row else None

    def get_document_by_path(self, file_path: str) -> Optional[StoredDocument]:
        row = self._conn.execute(
            "SELECT * FROM documents WHERE file_path = ?", (file_path,)
        ).fetchone()
        return self._row_to_document(row) if row else None

    def list_documents(self) -> list[StoredDocument]:
        rows = self._conn.execute(
            "SELECT * FROM documents ORDER BY last_read DESC"
        ).fetchall()
        return [self._row_to_document(r) for r in rows]

    def update_reading_progress(self, document_id: str, position: int) -> bool:
        cur = self._conn.execute(
            "UPDATE documents SET current_position = ?, last_read = ? WHERE id = ?",
            (position, time.time(), document_id),
        )
        self._conn.commit()
        return cur.rowcount > 0

    def delete_document(self, document_id: str) -> bool:
        cur = self._conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))
        self._conn.commit()
        return cur.rowcount > 0

    @staticmethod
    def _row_to_document(row: sqlite3.Row) -> StoredDocument:
        return StoredDocument(
            id=row["id"],
            title=row["title"],
            author=row["author"],
            file_path=row["file_path"],
            file_type=row["file_type"],
            total_pages=row["total_pages"],
            current_position=row["current_position"],
            last_read=row["last_read"],
            added_date=row["added_date"],
        )

    # ── Chapter Cache ──────────────────────────────────────

    def save_chapters(self, document_id: str, chapters: list[Chapter]) -> None:
        """Replace the cached chapter index of a document.

        The delete and the inserts are committed separately. A failure in
        between leaves the document with no cached chapters, which readers
        treat as a cache miss.
        """
        try:
            self._conn.execute(
                "DELETE FROM chapters WHERE document_id = ?", (document_id,)
            )
            self._conn.commit()

            now = time.time()
            self._conn.executemany(
                """INSERT INTO chapters
                   (id, document_id, title, start_position, end_position, chapter_order, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                [
                    (
                        ch.id,
                        document_id,
                        ch.title,
                        ch.start_position,
                        ch.end_position,
                        order,
                        now,
                    )
                    for order, ch in enumerate(chapters)
                ],
            )
            self._conn.commit()
        except sqlite3.Error as e:
            self._conn.rollback()
            raise CacheWriteFailure(
                f"Failed to cache chapters for {document_id}: {e}"
            ) from e

    def get_cached_chapters(self, document_id: str) -> Optional[list[Chapter]]:
        rows = self._conn.execute(
            """SELECT id, title, start_position, end_position FROM chapters
               WHERE document_id = ? ORDER BY chapter_order""",
            (document_id,),
        ).fetchall()
        if not rows:
            return None
        return [
            Chapter(
                id=r["id"],
                title=r["title"],
                start_position=r["start_position"],
                end_position=r["end_position"],
            )
            for r in rows
        ]

    def clear_chapter_cache(self, document_id: str) -> None:
        self._conn.execute("DELETE FROM chapters WHERE document_id = ?", (document_id,))
        self._conn.commit()

    # ── Settings ───────────────────────────────────────────

    def get_settings(self) -> UserSettings:
        row = self._conn.execute("SELECT * FROM user_settings WHERE id = 1").fetchone()
        if not row:
            return UserSettings()
        values = {f.name: row[f.name] for f in fields(UserSettings)}
        for name in _BOOL_SETTINGS:
            values[name] = bool(values[name])
        return UserSettings(**values)

    def save_settings(self, settings: UserSettings) -> None:
        values = asdict(settings)
        columns = list(values)
        self._conn.execute(
            f"""INSERT OR REPLACE INTO user_settings (id, {', '.join(columns)})
                VALUES (1, {', '.join('?' for _ in columns)})""",
            [values[c] for c in columns],
        )
        self._conn.commit()
