"""Tests for the JSON file record store."""

import json

import pytest

from lorcana_catalog.errors import StorageError
from lorcana_catalog.store import DocumentType, JsonFileStore, RecordStore


def test_store_satisfies_protocol(store):
    assert isinstance(store, RecordStore)


@pytest.mark.parametrize(
    "doc_type, expected",
    [
        (DocumentType.CARDS, []),
        (DocumentType.SETS, []),
        (DocumentType.PRICES, {}),
        (DocumentType.COLLECTIONS, []),
    ],
)
def test_ensure_creates_empty_default(store, data_dir, doc_type, expected):
    store.ensure(doc_type)
    path = data_dir / doc_type.filename
    assert path.exists()
    assert json.loads(path.read_text(encoding="utf-8")) == expected


def test_ensure_metadata_default(store):
    metadata = store.read_all(DocumentType.METADATA)
    assert metadata["version"] == "1.0.0"
    assert metadata["last_update"].startswith("2024-03-01T12:00:00")


def test_ensure_is_idempotent(store, data_dir):
    store.replace_all(DocumentType.CARDS, [{"id": "c1"}])
    before = (data_dir / "cards.json").read_text(encoding="utf-8")
    store.ensure(DocumentType.CARDS)
    assert (data_dir / "cards.json").read_text(encoding="utf-8") == before


def test_replace_then_read(store):
    store.replace_all(DocumentType.PRICES, {"c1": {"price": 2.5}})
    assert store.read_all(DocumentType.PRICES) == {"c1": {"price": 2.5}}


def test_written_file_is_indented_utf8(store, data_dir):
    store.replace_all(DocumentType.CARDS, [{"id": "c1", "name": "Élsa"}])
    text = (data_dir / "cards.json").read_text(encoding="utf-8")
    assert "Élsa" in text
    assert '\n  {' in text


def test_replace_leaves_no_temp_files(store, data_dir):
    store.replace_all(DocumentType.CARDS, [])
    store.replace_all(DocumentType.CARDS, [{"id": "c1"}])
    assert sorted(p.name for p in data_dir.iterdir()) == ["cards.json"]


def test_failed_write_keeps_previous_content(store, data_dir):
    store.replace_all(DocumentType.CARDS, [{"id": "c1"}])
    with pytest.raises(StorageError):
        store.replace_all(DocumentType.CARDS, [{"id": object()}])
    assert store.read_all(DocumentType.CARDS) == [{"id": "c1"}]
    assert sorted(p.name for p in data_dir.iterdir()) == ["cards.json"]


def test_corrupt_file_raises(store, data_dir):
    data_dir.mkdir(parents=True)
    (data_dir / "cards.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageError, match="Cannot read"):
        store.read_all(DocumentType.CARDS)


def test_wrong_container_type_raises(store, data_dir):
    data_dir.mkdir(parents=True)
    (data_dir / "prices.json").write_text("[]", encoding="utf-8")
    with pytest.raises(StorageError, match="expected dict"):
        store.read_all(DocumentType.PRICES)


def test_exists_and_size(store):
    assert not store.exists(DocumentType.SETS)
    assert store.size_of(DocumentType.SETS) is None
    store.replace_all(DocumentType.SETS, [{"code": "TFC"}])
    assert store.exists(DocumentType.SETS)
    assert store.size_of(DocumentType.SETS) > 0


def test_separate_instances_share_files(data_dir):
    JsonFileStore(data_dir).replace_all(DocumentType.CARDS, [{"id": "c1"}])
    assert JsonFileStore(data_dir).read_all(DocumentType.CARDS) == [{"id": "c1"}]
