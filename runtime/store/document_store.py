"""Shared in-memory + optional file-backed document storage.

Every collection (sessions, jobs, workers) follows the same pattern:

- In-memory access is the primary source of truth during a run.
- If a data_dir is configured, every document is also written to
  `data_dir/<collection>/<id>.json` and all documents are loaded back on
  start, so they survive restarts.

Reads hand out copies. A caller only changes stored state by saving, which
is what makes a save a whole-document, last-write-wins replacement.

Every mutation runs under the store's lock; that lock is the per-document
atomicity the rest of the runtime relies on. Nothing above the stores
takes locks of its own.
"""

import json
import logging
import os
import threading
from pathlib import Path
from typing import Callable, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel

from exceptions.exceptions import StoreError


logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class DocumentStore(Generic[T]):
    """In-memory + optional file-backed collection of pydantic documents.

    Parameters
    ----------
    data_dir:
        Base directory for JSON files. If None, the store is memory-only.
    """

    collection: str = "documents"
    model: Type[BaseModel] = BaseModel

    def __init__(self, data_dir: Optional[str] = None) -> None:
        self._docs: Dict[str, T] = {}
        self._lock = threading.RLock()
        self._data_dir: Optional[Path] = Path(data_dir) if data_dir else None

        if self._data_dir is not None:
            self._collection_dir.mkdir(parents=True, exist_ok=True)
            self._load_all()

    @property
    def _collection_dir(self) -> Path:
        return self._data_dir / self.collection

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, doc_id: str) -> Optional[T]:
        with self._lock:
            doc = self._docs.get(doc_id)
            return doc.model_copy(deep=True) if doc is not None else None

    def find(self, predicate: Callable[[T], bool]) -> List[T]:
        with self._lock:
            return [
                doc.model_copy(deep=True)
                for doc in self._docs.values()
                if predicate(doc)
            ]

    def all(self) -> List[T]:
        return self.find(lambda doc: True)

    def count(self, predicate: Callable[[T], bool]) -> int:
        with self._lock:
            return sum(1 for doc in self._docs.values() if predicate(doc))

    # ------------------------------------------------------------------
    # Writes (callers must hold self._lock when composing several steps)
    # ------------------------------------------------------------------

    def _put(self, doc: T) -> T:
        """Persist first, then replace the in-memory copy."""
        stored = doc.model_copy(deep=True)
        self._persist(stored)
        self._docs[stored.id] = stored
        return stored.model_copy(deep=True)

    def _persist(self, doc: T) -> None:
        """Write the document to disk if a data_dir is configured.

        If no data_dir was provided, this is a no-op. The file is written
        to a temporary path and moved into place so a crash never leaves
        half a document behind.
        """
        if self._data_dir is None:
            return

        path = self._collection_dir / f"{doc.id}.json"
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self._collection_dir.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(doc.model_dump(mode="json"), f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as exc:
            raise StoreError(f"Failed to write {self.collection}/{doc.id}: {exc}") from exc

    def _load_all(self) -> None:
        """Load every <id>.json in the collection directory.

        Broken files are skipped (and logged) rather than failing startup.
        """
        for path in sorted(self._collection_dir.glob("*.json")):
            try:
                with path.open("r", encoding="utf-8") as f:
                    data = json.load(f)
                doc = self.model(**data)
            except (OSError, ValueError, TypeError) as exc:
                logger.warning("[STORE] Skipping unreadable %s: %s", path, exc)
                continue
            self._docs[doc.id] = doc
