import asyncio

import pytest

from homework_catalog.catalog.models import SubmissionRecord, ViewState
from homework_catalog.catalog.store import (
    SUBMISSIONS_KEY,
    CatalogStore,
    StorageError,
)
from homework_catalog.processing.ingest import ingest_archive


def test_catalog_round_trip(store, batch_zip):
    catalog = asyncio.run(ingest_archive(batch_zip)).catalog

    store.save_submissions(catalog)
    loaded = store.load_submissions()

    assert loaded.keys() == catalog.keys()
    assert loaded == catalog
    assert loaded is not catalog


def test_missing_keys_load_as_none(store):
    assert store.load_submissions() is None
    assert store.load_references() is None
    assert store.load_view_state() is None


def test_save_overwrites(store):
    store.save_references({"a.cpp": "a"})
    store.save_references({"b.cpp": "b"})

    assert store.load_references() == {"b.cpp": "b"}


def test_view_state_round_trip(store):
    state = ViewState("12345", "src/main.cpp", "main.cpp")

    store.save_view_state(state)

    assert store.load_view_state() == state


def test_clear_removes_everything(store):
    store.save_references({"a.cpp": "a"})
    store.save_view_state(ViewState("1"))

    store.clear()

    assert store.load_references() is None
    assert store.load_view_state() is None
    assert not list(store.directory.glob("*.json"))


def test_delete_missing_key_is_ignored(store):
    store.delete(SUBMISSIONS_KEY)


def test_corrupt_file_raises_storage_error(store):
    store.directory.mkdir(parents=True)
    (store.directory / f"{SUBMISSIONS_KEY}.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(StorageError):
        store.load_submissions()


def test_unwritable_directory_raises_storage_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    store = CatalogStore(blocker / "store")

    with pytest.raises(StorageError):
        store.save_references({"a": "b"})


def test_record_serialization_keeps_bytes():
    record = SubmissionRecord("1", "A", "B", "a.zip", b"\x00\xffPK", {"a.c": "x"})

    assert SubmissionRecord.from_dict(record.to_dict()) == record


def test_record_requires_id():
    with pytest.raises(ValueError):
        SubmissionRecord("", "A", "B", "a.zip", b"")
