"""Document store for the gyms/areas/sports/open_slots/sources collections."""
import json
import os
import tempfile
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..config import settings
from ..exceptions import DocumentNotFoundError

# (field, op, value); op is one of "==", ">=", "<=", "array-contains"
Filter = Tuple[str, str, Any]


def _matches(doc: Dict[str, Any], where: Iterable[Filter]) -> bool:
    for field, op, value in where:
        actual = doc.get(field)
        if op == "==":
            if actual != value:
                return False
        elif op == ">=":
            if actual is None or actual < value:
                return False
        elif op == "<=":
            if actual is None or actual > value:
                return False
        elif op == "array-contains":
            if not isinstance(actual, list) or value not in actual:
                return False
        else:
            raise ValueError(f"Unsupported filter operator: {op}")
    return True


class DocumentStore(ABC):
    """Persistence port used by the pipeline.

    Documents are plain dicts keyed by an opaque generated id. Returned
    documents always carry that id under the ``id`` key.
    """

    @abstractmethod
    def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Insert a document and return its generated id."""

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one document by id, or None."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Merge fields into an existing document.

        Raises:
            DocumentNotFoundError: if the document does not exist
        """

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document, returning False if it did not exist."""

    @abstractmethod
    def find(
        self, collection: str, where: Optional[List[Filter]] = None
    ) -> List[Dict[str, Any]]:
        """Return all documents in a collection matching every filter."""

    @abstractmethod
    def get_or_create(
        self, collection: str, field: str, value: Any, data: Dict[str, Any]
    ) -> Tuple[str, bool]:
        """Return the id of the first document with ``field == value``,
        inserting ``data`` first if there is none.

        The lookup and the insert happen atomically with respect to other
        callers of the same store.

        Returns:
            Tuple of (doc_id, created)
        """

    def find_one(self, collection: str, field: str, value: Any) -> Optional[Dict[str, Any]]:
        """Return the first document with ``field == value``, or None."""
        docs = self.find(collection, [(field, "==", value)])
        return docs[0] if docs else None


class JsonFileStore(DocumentStore):
    """Document store keeping one JSON file per document on the file system.

    Layout: ``<base_path>/<collection>/<doc_id>.json``.
    """

    def __init__(self, base_path: Optional[Path] = None):
        """Initialize the store.

        Args:
            base_path: Base directory for storage. Defaults to settings.storage_path
        """
        self.base_path = base_path or settings.storage_path
        self._lock = threading.RLock()
        self._ensure_base_directory()

    def _ensure_base_directory(self) -> None:
        """Ensure the base storage directory exists."""
        self.base_path.mkdir(parents=True, exist_ok=True)

    def generate_id(self) -> str:
        """Generate a unique document id.

        Returns:
            Id in format: YYYYMMDD_HHMMSS_{uuid}
        """
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        unique_id = uuid.uuid4().hex[:8]
        return f"{timestamp}_{unique_id}"

    def get_collection_directory(self, collection: str) -> Path:
        collection_dir = self.base_path / collection
        collection_dir.mkdir(parents=True, exist_ok=True)
        return collection_dir

    def _doc_path(self, collection: str, doc_id: str) -> Path:
        return self.get_collection_directory(collection) / f"{doc_id}.json"

    def _write(self, path: Path, data: Dict[str, Any]) -> None:
        # Readers never see a partial file: write a sibling temp file, then swap it in
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False, default=str)
            os.replace(tmp_name, path)
        except Exception:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _read(self, path: Path) -> Dict[str, Any]:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        with self._lock:
            doc_id = self.generate_id()
            body = {k: v for k, v in data.items() if k != "id"}
            self._write(self._doc_path(collection, doc_id), body)
            return doc_id

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Create or overwrite a document under a caller-chosen id."""
        with self._lock:
            body = {k: v for k, v in data.items() if k != "id"}
            self._write(self._doc_path(collection, doc_id), body)

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        path = self._doc_path(collection, doc_id)
        if not path.exists():
            return None
        return {**self._read(path), "id": doc_id}

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            path = self._doc_path(collection, doc_id)
            if not path.exists():
                raise DocumentNotFoundError(collection, doc_id)
            body = self._read(path)
            body.update({k: v for k, v in fields.items() if k != "id"})
            self._write(path, body)
            return {**body, "id": doc_id}

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            path = self._doc_path(collection, doc_id)
            if not path.exists():
                return False
            path.unlink()
            return True

    def find(
        self, collection: str, where: Optional[List[Filter]] = None
    ) -> List[Dict[str, Any]]:
        collection_dir = self.get_collection_directory(collection)
        docs = []
        # Sorted by file name, which starts with the creation timestamp
        for path in sorted(collection_dir.glob("*.json")):
            doc = {**self._read(path), "id": path.stem}
            if _matches(doc, where or []):
                docs.append(doc)
        return docs

    def get_or_create(
        self, collection: str, field: str, value: Any, data: Dict[str, Any]
    ) -> Tuple[str, bool]:
        with self._lock:
            existing = self.find_one(collection, field, value)
            if existing:
                return existing["id"], False
            return self.add(collection, data), True


# Global document store instance
document_store = JsonFileStore()
