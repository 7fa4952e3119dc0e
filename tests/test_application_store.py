"""
Unit Tests for ApplicationStore

Covers the (user, job) uniqueness guard, ownership checks and ordering.
"""
from __future__ import annotations

import threading
from unittest.mock import MagicMock

import duckdb
import pytest

from applytrack import db
from applytrack.errors import DuplicateError, NotFoundError, StorageUnavailableError
from applytrack.models.application import ApplicationStatus, ApplicationUpdate
from applytrack.services.application_store import ApplicationStore

from .conftest import START


def test_create_starts_in_applied(store):
    app = store.create("u1", "j1")
    assert app.status == ApplicationStatus.APPLIED
    assert app.applied_at == START
    assert app.updated_at == START
    assert app.interview_at is None
    assert store.get(app.id, "u1") == app


def test_create_same_pair_twice_is_duplicate(store):
    store.create("u1", "j1")
    with pytest.raises(DuplicateError):
        store.create("u1", "j1")


def test_duplicate_guard_ignores_status(store):
    app = store.create("u1", "j1")
    store.update(app.id, "u1", ApplicationUpdate(status=ApplicationStatus.WITHDRAWN))
    with pytest.raises(DuplicateError):
        store.create("u1", "j1")


def test_same_job_for_other_user_is_allowed(store):
    first = store.create("u1", "j1")
    second = store.create("u2", "j1")
    assert first.id != second.id


def test_get_other_users_application_is_not_found(store):
    app = store.create("u1", "j1")
    with pytest.raises(NotFoundError):
        store.get(app.id, "u2")
    with pytest.raises(NotFoundError):
        store.get("missing", "u1")


def test_list_by_user_newest_first(store, clock):
    older = store.create("u1", "j1")
    clock.advance(days=1)
    newer = store.create("u1", "j2")
    store.create("u2", "j3")

    assert [a.id for a in store.list_by_user("u1")] == [newer.id, older.id]


def test_list_by_user_same_timestamp_uses_insert_order(store):
    first = store.create("u1", "j1")
    second = store.create("u1", "j2")
    assert [a.id for a in store.list_by_user("u1")] == [second.id, first.id]


def test_list_by_user_status_filter(store):
    a = store.create("u1", "j1")
    store.create("u1", "j2")
    store.update(a.id, "u1", ApplicationUpdate(status=ApplicationStatus.REJECTED))

    rejected = store.list_by_user("u1", ApplicationStatus.REJECTED)
    assert [r.id for r in rejected] == [a.id]


def test_list_by_user_empty(store):
    assert store.list_by_user("nobody") == []


def test_update_only_touches_set_fields(store, clock):
    app = store.create("u1", "j1")
    store.update(app.id, "u1", ApplicationUpdate(contact_person="Dana"))
    clock.advance(hours=1)

    updated = store.update(app.id, "u1", ApplicationUpdate(notes_summary="phone screen"))
    assert updated.contact_person == "Dana"
    assert updated.notes_summary == "phone screen"
    assert updated.status == ApplicationStatus.APPLIED
    assert updated.applied_at == START
    assert updated.updated_at == clock.now


def test_update_can_clear_a_timestamp(store):
    app = store.create("u1", "j1")
    store.update(app.id, "u1", ApplicationUpdate(follow_up_at=START))
    cleared = store.update(app.id, "u1", ApplicationUpdate(follow_up_at=None))
    assert cleared.follow_up_at is None


def test_update_other_users_application_is_not_found(store):
    app = store.create("u1", "j1")
    with pytest.raises(NotFoundError):
        store.update(app.id, "u2", ApplicationUpdate(status=ApplicationStatus.REJECTED))
    assert store.get(app.id, "u1").status == ApplicationStatus.APPLIED


def test_storage_failure_is_reported_as_unavailable(clock):
    con = MagicMock()
    con.cursor.return_value.__enter__.return_value.execute.side_effect = duckdb.IOException(
        "disk gone"
    )
    broken = ApplicationStore(con, clock)
    with pytest.raises(StorageUnavailableError):
        broken.list_by_user("u1")


def _store_raising(clock, error):
    con = MagicMock()
    con.cursor.return_value.__enter__.return_value.execute.side_effect = error
    return ApplicationStore(con, clock)


def test_unique_violation_reported_at_commit_is_duplicate(clock):
    store = _store_raising(
        clock,
        duckdb.TransactionException(
            'Failed to commit: PRIMARY KEY or UNIQUE constraint violation: duplicate key "u1, j1"'
        ),
    )
    with pytest.raises(DuplicateError):
        store.create("u1", "j1")


def test_write_conflict_is_not_mistaken_for_duplicate(clock):
    store = _store_raising(clock, duckdb.TransactionException("Conflict on tuple deletion!"))
    with pytest.raises(StorageUnavailableError):
        store.create("u1", "j1")


@pytest.fixture
def file_con(tmp_path):
    connection = db.connect(str(tmp_path / "applications.duckdb"))
    yield connection
    connection.close()


def test_racing_creates_for_same_pair_yield_one_duplicate(file_con, clock):
    store = ApplicationStore(file_con, clock)

    for round_no in range(25):
        job_id = f"j{round_no}"
        barrier = threading.Barrier(2)
        outcomes: list[str] = []

        def create():
            barrier.wait()
            try:
                store.create("u1", job_id)
                outcomes.append("ok")
            except DuplicateError:
                outcomes.append("duplicate")
            except Exception as e:
                outcomes.append(type(e).__name__)

        threads = [threading.Thread(target=create) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["duplicate", "ok"]

    assert len(store.list_by_user("u1")) == 25
