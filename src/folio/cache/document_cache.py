"""Bounded in-memory cache of parsed documents."""

from __future__ import annotations

import copy
import logging
import threading
from collections import OrderedDict
from typing import Optional

from folio.library.models import Document

log = logging.getLogger(__name__)

DEFAULT_CAPACITY = 5


class DocumentCache:
    """LRU map of document id to parsed Document.

    Entries are copied on the way in and on the way out, so callers never
    share a Document with the cache.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._documents: OrderedDict[str, Document] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def get(self, document_id: str) -> Optional[Document]:
        with self._lock:
            document = self._documents.get(document_id)
            if document is None:
                return None
            self._documents.move_to_end(document_id)
            return copy.deepcopy(document)

    def set(self, document: Document) -> None:
        stored = copy.deepcopy(document)
        with self._lock:
            if document.id in self._documents:
                self._documents.move_to_end(document.id)
            elif len(self._documents) >= self._capacity:
                evicted, _ = self._documents.popitem(last=False)
                log.debug("Evicted document %s from memory cache", evicted)
            self._documents[document.id] = stored

    def update_position(self, document_id: str, position: int) -> bool:
        with self._lock:
            document = self._documents.get(document_id)
            if document is None:
                return False
            document.current_position = position
            return True

    def clear(self, document_id: str) -> bool:
        with self._lock:
            return self._documents.pop(document_id, None) is not None

    def clear_all(self) -> None:
        with self._lock:
            self._documents.clear()

    def ids(self) -> list[str]:
        """Cached ids, least recently used first."""
        with self._lock:
            return list(self._documents)

    def __contains__(self, document_id: object) -> bool:
        with self._lock:
            return document_id in self._documents

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)
