"""
Session history store for Aether.

Saves analysis sessions as JSON documents on disk, grouped in collections
such as "diagnoses/{user_id}/sessions".
"""

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

from aether.config import settings
from aether.utils.logger import get_logger

logger = get_logger("history_store")

_SEGMENT = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.@-]{0,127}$")


class HistoryStoreError(ValueError):
    """Raised for invalid collection paths or document ids."""

    error_code = "INVALID_HISTORY_PATH"


class HistoryStore:
    """
    JSON document store on the local filesystem.

    Each document is one file, `<root>/<collection_path>/<doc_id>.json`.
    Collection path segments are restricted to a safe character set, so
    user supplied ids cannot escape the root directory.
    """

    def __init__(self, root: Optional[Path] = None):
        self.root = Path(root) if root is not None else settings.history_path

    def _collection_dir(self, collection_path: str) -> Path:
        segments = collection_path.strip("/").split("/")
        for segment in segments:
            if not _SEGMENT.match(segment) or segment in (".", ".."):
                raise HistoryStoreError(f"Invalid collection path: {collection_path!r}")
        return self.root.joinpath(*segments)

    def _document_path(self, collection_path: str, doc_id: str) -> Path:
        if not _SEGMENT.match(doc_id):
            raise HistoryStoreError(f"Invalid document id: {doc_id!r}")
        return self._collection_dir(collection_path) / f"{doc_id}.json"

    def save(self, collection_path: str, record: Dict[str, Any]) -> str:
        """
        Save a document in a collection.

        Args:
            collection_path: e.g. "diagnoses/anonymous/sessions"
            record: JSON-serialisable document

        Returns:
            Generated document id
        """
        doc_id = uuid4().hex
        document = {
            "id": doc_id,
            "created_at": datetime.now(timezone.utc).isoformat(),
            **record,
        }

        path = self._document_path(collection_path, doc_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(document, ensure_ascii=False, indent=2), encoding="utf-8")

        logger.info("Session saved", collection=collection_path, doc_id=doc_id)
        return doc_id

    def get(self, collection_path: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Load one document, or None if it does not exist."""
        path = self._document_path(collection_path, doc_id)
        if not path.is_file():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def list(self, collection_path: str, limit: int = 50) -> List[Dict[str, Any]]:
        """
        List documents in a collection, newest first.

        Args:
            collection_path: Collection to read
            limit: Maximum number of documents

        Returns:
            List of documents
        """
        directory = self._collection_dir(collection_path)
        if not directory.is_dir():
            return []

        documents = []
        for path in directory.glob("*.json"):
            try:
                documents.append(json.loads(path.read_text(encoding="utf-8")))
            except json.JSONDecodeError:
                logger.warning("Skipping unreadable session", path=str(path))

        documents.sort(key=lambda doc: doc.get("created_at", ""), reverse=True)
        return documents[:limit]


# Lazy-loaded singleton
_history_store: Optional[HistoryStore] = None


def get_history_store() -> HistoryStore:
    """Get or create history store singleton."""
    global _history_store
    if _history_store is None:
        _history_store = HistoryStore()
    return _history_store
