"""Tests for the SQLite document store and the local history."""

from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from docscan.analysis.section_segmenter import Section
from docscan.pipeline import DocumentRecord
from docscan.storage.document_store import DocumentStore, StoredDocument
from docscan.storage.history import LocalHistory


def _record(title: str = "Acme Invoice", raw_text: str = "Invoice No 1\nTotal $5") -> DocumentRecord:
    return DocumentRecord(
        title=title,
        raw_text=raw_text,
        sections=[Section("General", raw_text)],
        scanned_found=True,
        doc_type="Invoice",
        mean_confidence=88,
    )


def _at(day: int, hour: int = 12) -> datetime:
    return datetime(2026, 3, day, hour, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path: Path) -> DocumentStore:
    return DocumentStore(tmp_path / "db" / "documents.db")


class TestDocumentStore:
    """Tests for inserting and searching stored documents."""

    def test_insert_round_trip(self, store: DocumentStore) -> None:
        doc = store.insert(_record())
        fetched = store.get(doc.id)
        assert fetched is not None
        assert fetched.title == "Acme Invoice"
        assert fetched.sections[0].heading == "General"
        assert fetched.scanned_found is True
        assert fetched.doc_type == "Invoice"
        assert fetched.mean_confidence == 88

    def test_get_missing(self, store: DocumentStore) -> None:
        assert store.get("nope") is None

    def test_rejects_empty_text(self, store: DocumentStore) -> None:
        with pytest.raises(ValueError, match="without text"):
            store.insert(_record(raw_text="   \n"))

    def test_title_truncated(self, store: DocumentStore) -> None:
        doc = store.insert(_record(title="t" * 300))
        assert len(doc.title) == 120

    def test_newest_first(self, store: DocumentStore) -> None:
        store.insert(_record("old"), created_at=_at(1))
        store.insert(_record("new"), created_at=_at(3))
        store.insert(_record("mid"), created_at=_at(2))
        assert [d.title for d in store.search()] == ["new", "mid", "old"]

    def test_substring_search_title_or_text(self, store: DocumentStore) -> None:
        store.insert(_record("Lease agreement", "Party A rents to Party B"))
        store.insert(_record("Coffee", "Receipt\nCashier: Bob"))
        assert [d.title for d in store.search("AGREE")] == ["Lease agreement"]
        assert [d.title for d in store.search("cashier")] == ["Coffee"]
        assert store.search("zebra") == []

    def test_search_folds_unicode_case(self, store: DocumentStore) -> None:
        store.insert(_record("ÉCOLE PRIMAIRE", "Facture"))
        store.insert(_record("Straße 5", "Rechnung"))
        assert [d.title for d in store.search("école")] == ["ÉCOLE PRIMAIRE"]
        assert [d.title for d in store.search("STRASSE")] == ["Straße 5"]
        assert [d.title for d in store.search("RECHNUNG")] == ["Straße 5"]

    def test_wildcard_characters_are_literal(self, store: DocumentStore) -> None:
        store.insert(_record("Discount", "50% off"))
        store.insert(_record("Plain", "5000 units"))
        assert [d.title for d in store.search("50%")] == ["Discount"]

    def test_date_range_inclusive(self, store: DocumentStore) -> None:
        store.insert(_record("first"), created_at=_at(1, 0))
        store.insert(_record("second"), created_at=_at(2, 23))
        store.insert(_record("third"), created_at=_at(3, 0))

        found = store.search(date_from=date(2026, 3, 2), date_to=date(2026, 3, 2))
        assert [d.title for d in found] == ["second"]

        found = store.search(date_from=date(2026, 3, 1), date_to=date(2026, 3, 3))
        assert len(found) == 3

    def test_limit(self, store: DocumentStore) -> None:
        for i in range(5):
            store.insert(_record(f"doc {i}"), created_at=_at(i + 1))
        found = store.search(limit=2)
        assert [d.title for d in found] == ["doc 4", "doc 3"]


class TestLocalHistory:
    """Tests for the JSON-backed local history."""

    def test_empty_when_missing(self, tmp_path: Path) -> None:
        assert LocalHistory(tmp_path / "history.json").list() == []

    def test_save_prepends(self, tmp_path: Path) -> None:
        history = LocalHistory(tmp_path / "nested" / "history.json")
        history.save(StoredDocument(title="one", raw_text="a"))
        history.save(StoredDocument(title="two", raw_text="b"))
        assert [d.title for d in history.list()] == ["two", "one"]

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        path = tmp_path / "history.json"
        saved = LocalHistory(path).save(
            StoredDocument.from_record(_record(), created_at=_at(5))
        )
        loaded = LocalHistory(path).list()
        assert loaded == [saved]

    def test_clear(self, tmp_path: Path) -> None:
        history = LocalHistory(tmp_path / "history.json")
        history.save(StoredDocument(title="one", raw_text="a"))
        history.clear()
        assert history.list() == []
