import asyncio

import pytest

from conftest import CORRUPT_ZIP, make_zip
from homework_catalog.catalog.store import StorageError
from homework_catalog.processing.extractor import ArchiveOpenError
from homework_catalog.session import GradingSession


def load(session, data):
    return asyncio.run(session.load_submissions(data))


def test_load_submissions_persists(session, store, batch_zip):
    result, warning = load(session, batch_zip)

    assert warning is None
    assert set(session.submissions) == set(result.catalog)
    assert store.load_submissions() == session.submissions


def test_restore_round_trip(session, store, batch_zip):
    load(session, batch_zip)
    session.load_references({"main.cpp": b"int main();"})
    session.select("12345", "src/main.cpp", "main.cpp")

    restored = GradingSession(store)
    assert restored.restore() is None

    assert restored.submissions == session.submissions
    assert restored.references == {"main.cpp": "int main();"}
    assert restored.view_state.selected_student_id == "12345"
    assert restored.view_state.selected_submission_file == "src/main.cpp"


def test_stale_selection_is_not_restored(session, store, batch_zip):
    load(session, batch_zip)
    session.select("12345")
    store.save_submissions({})

    restored = GradingSession(store)
    restored.restore()

    assert restored.view_state.selected_student_id is None


def test_new_upload_replaces_catalog_and_selection(session):
    load(session, make_zip({"hw+11111+A+x+S.zip": make_zip({"a.c": "a"})}))
    session.select("11111", "a.c")

    load(session, make_zip({"hw+22222+B+x+S.zip": make_zip({"b.c": "b"})}))

    assert set(session.submissions) == {"22222"}
    assert session.view_state.selected_student_id is None
    assert session.view_state.selected_submission_file is None


def test_selection_survives_when_student_remains(session):
    batch = make_zip({"hw+11111+A+x+S.zip": make_zip({"a.c": "a"})})
    load(session, batch)
    session.select("11111", "a.c")

    load(session, batch)

    assert session.view_state.selected_student_id == "11111"


def test_failed_upload_keeps_previous_catalog(session, batch_zip):
    load(session, batch_zip)
    before = dict(session.submissions)

    with pytest.raises(ArchiveOpenError):
        load(session, CORRUPT_ZIP)

    assert session.submissions == before


def test_persistence_failure_keeps_catalog(session, store, batch_zip, monkeypatch):
    def fail(catalog):
        raise StorageError("disk full")

    monkeypatch.setattr(store, "save_submissions", fail)

    result, warning = load(session, batch_zip)

    assert "disk full" in warning
    assert session.submissions == result.catalog


def test_restore_reports_unreadable_store(session, store):
    store.directory.mkdir(parents=True)
    (store.directory / "grading-references.json").write_text("[broken", encoding="utf-8")

    assert session.restore() == "Could not restore previous session."
    assert session.submissions == {}


def test_references_are_replaced(session):
    session.load_references({"a.cpp": "a"})
    session.select(reference_file="a.cpp")

    session.load_references({"b.cpp": b"b"})

    assert session.references == {"b.cpp": "b"}
    assert session.view_state.selected_reference_file is None


def test_reference_paths(session, tmp_path):
    path = tmp_path / "sol.py"
    path.write_text("print(1)\n", encoding="utf-8")

    session.load_reference_paths([path])

    assert session.references == {"sol.py": "print(1)\n"}


def test_student_list_sorted_by_name(session, batch_zip):
    load(session, batch_zip)

    assert [r.student_name for r in session.student_list()] == ["Anna Smith", "Jane Doe", "John Roe"]


def test_select_unknown_student(session):
    with pytest.raises(KeyError):
        session.select("nobody")


def test_select_unknown_file(session, batch_zip):
    load(session, batch_zip)

    with pytest.raises(KeyError):
        session.select("12345", "missing.cpp")


def test_export_archive(session, batch_zip, student_zip, tmp_path):
    load(session, batch_zip)

    target = session.export_archive("12345", tmp_path / "out")

    assert target.name == "hw+12345+Jane_Doe+extra+SECTION_A.zip"
    assert target.read_bytes() == student_zip


def test_clear(session, store, batch_zip):
    load(session, batch_zip)

    session.clear()

    assert session.submissions == {}
    assert store.load_submissions() is None
