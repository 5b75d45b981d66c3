"""JSON file store for document records."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..models.signed_document import DocumentRecord, DocumentStatus

logger = logging.getLogger(__name__)

STORE_VERSION = 1


class DocumentNotFoundError(Exception):
    """Raised when a document id is not in the store."""
    pass


class DocumentStore:
    """Key-value store of DocumentRecords backed by one JSON file.

    Records are kept newest first: new records are inserted at the front,
    updated records keep their position.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _load_raw(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load document store %s: %s", self.path, e)
            return []
        if isinstance(data, dict):
            return list(data.get("documents") or [])
        logger.warning("Unexpected document store layout in %s, ignoring", self.path)
        return []

    def _save_raw(self, documents: List[Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"version": STORE_VERSION, "documents": documents}
        # write a sibling .tmp file, then swap it in
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False)
        os.replace(tmp, self.path)

    def put(self, record: DocumentRecord) -> None:
        """Insert or replace a record."""
        documents = self._load_raw()
        data = record.to_dict()
        for i, existing in enumerate(documents):
            if existing.get("id") == record.id:
                documents[i] = data
                break
        else:
            documents.insert(0, data)
        self._save_raw(documents)
        logger.debug("Stored document %s", record.id)

    def get(self, document_id: str) -> DocumentRecord:
        """Load a record.

        Raises:
            DocumentNotFoundError: If no record has that id
        """
        for data in self._load_raw():
            if data.get("id") == document_id:
                return DocumentRecord.from_dict(data)
        raise DocumentNotFoundError(f"Document {document_id} not found")

    def delete(self, document_id: str) -> bool:
        """Remove a record.

        Returns:
            True if a record was removed
        """
        documents = self._load_raw()
        remaining = [d for d in documents if d.get("id") != document_id]
        if len(remaining) == len(documents):
            return False
        self._save_raw(remaining)
        return True

    def list(
        self,
        query: Optional[str] = None,
        status: Optional[Union[str, DocumentStatus]] = None,
    ) -> List[DocumentRecord]:
        """List records, newest first.

        Args:
            query: Case-insensitive substring matched against title or filename
            status: "signed", "unsigned", or None / "all" for no filter

        Returns:
            Matching records
        """
        wanted = None
        if status is not None and status != "all":
            wanted = DocumentStatus(status)
        needle = query.lower() if query else None

        records = []
        for data in self._load_raw():
            record = DocumentRecord.from_dict(data)
            if needle and needle not in record.title.lower() and needle not in record.filename.lower():
                continue
            if wanted is not None and record.status != wanted:
                continue
            records.append(record)
        return records
