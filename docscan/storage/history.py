"""Local history of processed documents kept in a JSON file.

Owned by the CLI or API layer. Newest documents come first.
"""

from pathlib import Path

from pydantic import TypeAdapter

from docscan.utils.logger import get_logger

from .document_store import StoredDocument

logger = get_logger(__name__)

_ADAPTER = TypeAdapter(list[StoredDocument])


class LocalHistory:
    """File-backed list of recently processed documents.

    Args:
        path: JSON file holding the history. Created on first save.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def save(self, doc: StoredDocument) -> StoredDocument:
        """Prepend a document to the history."""
        docs = [doc, *self.list()]
        self._write(docs)
        logger.info("Saved %s to local history (%d entries)", doc.id, len(docs))
        return doc

    def clear(self) -> None:
        """Remove every saved document."""
        self._write([])
        logger.info("Cleared local history at %s", self.path)

    def _write(self, docs: list[StoredDocument]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(_ADAPTER.dump_json(docs, indent=2))

    def list(self) -> list[StoredDocument]:
        """Return saved documents, newest first."""
        if not self.path.exists():
            return []
        data = self.path.read_bytes()
        if not data.strip():
            return []
        return _ADAPTER.validate_json(data)
