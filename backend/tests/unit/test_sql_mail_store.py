"""Unit tests for SqlMailStore using in-memory SQLite

Tests cover insert/list ordering, validation, clear semantics, concurrent
inserts, truncate/tail retention, raw source lookup and the mapping of
database failures to StoreUnavailable.
"""

import threading
from uuid import UUID

import pytest
from sqlalchemy import text

from mongster.database import create_db_engine, create_session_factory
from mongster.domain.mail.ports import InvalidRecord, StoreUnavailable
from mongster.infrastructure.store.sql_mail_store import SqlMailStore


def insert_numbered(store, make_record, count):
    records = [make_record(subject=f"message {i}") for i in range(count)]
    for record in records:
        store.insert(record)
    return records


class TestInsertAndList:
    """Test that inserted records come back unchanged and in order"""

    def test_empty_store_lists_nothing(self, store):
        assert store.list_all() == []
        assert store.count() == 0

    def test_insert_returns_id(self, store, make_record):
        record_id = store.insert(make_record())
        assert isinstance(record_id, UUID)

    def test_round_trip_preserves_every_field(self, store, make_record):
        record = make_record(
            cc=["carol@example.com"],
            reply_to="replies@example.com",
            body="Grüße\nzweite Zeile",
        )
        store.insert(record)

        assert store.list_all() == [record]

    def test_list_in_insertion_order(self, store, make_record):
        records = insert_numbered(store, make_record, 5)
        assert store.list_all() == records

    def test_order_ignores_date_header(self, store, make_record):
        later = make_record(subject="first received", date="Tue, 6 Jan 2026 10:00:00 +0000")
        earlier = make_record(subject="second received", date="Sun, 4 Jan 2026 10:00:00 +0000")
        store.insert(later)
        store.insert(earlier)

        assert [r.subject for r in store.list_all()] == ["first received", "second received"]

    def test_identical_records_are_kept_separately(self, store, make_record):
        record = make_record()
        first = store.insert(record)
        second = store.insert(record)

        assert first != second
        assert store.list_all() == [record, record]

    def test_invalid_record_is_rejected(self, store, make_record):
        with pytest.raises(InvalidRecord):
            store.insert(make_record(to=[]))

        assert store.count() == 0

    def test_concurrent_inserts_all_persist(self, store, make_record):
        threads_count = 8
        per_thread = 10
        errors = []

        def worker(worker_id):
            try:
                for i in range(per_thread):
                    store.insert(make_record(subject=f"{worker_id}-{i}"))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        subjects = [r.subject for r in store.list_all()]
        assert len(subjects) == threads_count * per_thread
        assert len(set(subjects)) == threads_count * per_thread
        # Per-thread order is preserved
        for worker_id in range(threads_count):
            own = [s for s in subjects if s.startswith(f"{worker_id}-")]
            assert own == [f"{worker_id}-{i}" for i in range(per_thread)]


class TestClear:
    """Test clear_all semantics"""

    def test_clear_removes_everything(self, store, make_record):
        insert_numbered(store, make_record, 3)

        assert store.clear_all() == 3
        assert store.list_all() == []

    def test_clear_empty_store(self, store):
        assert store.clear_all() == 0

    def test_clear_is_idempotent(self, store, make_record):
        insert_numbered(store, make_record, 2)

        assert store.clear_all() == 2
        assert store.clear_all() == 0
        assert store.list_all() == []

    def test_insert_after_clear(self, store, make_record):
        insert_numbered(store, make_record, 2)
        store.clear_all()
        record = make_record(subject="after clear")
        store.insert(record)

        assert store.list_all() == [record]
        assert store.get_raw(0) is None  # no raw source kept for this insert

    def test_clear_and_list_racing_inserts(self, store, make_record):
        writers = 4
        per_writer = 25
        inserted = []
        cleared = []
        listings = []
        errors = []
        writers_done = threading.Event()

        def writer(writer_id):
            try:
                for i in range(per_writer):
                    store.insert(make_record(subject=f"{writer_id}-{i}"))
                    inserted.append(1)
            except Exception as e:
                errors.append(e)

        def clearer():
            try:
                while not writers_done.is_set():
                    cleared.append(store.clear_all())
            except Exception as e:
                errors.append(e)

        def reader():
            try:
                while not writers_done.is_set():
                    listings.append(store.list_all())
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(writers)]
        background = [threading.Thread(target=clearer), threading.Thread(target=reader)]
        for thread in background + threads:
            thread.start()
        for thread in threads:
            thread.join()
        writers_done.set()
        for thread in background:
            thread.join()

        assert errors == []
        # Every successful insert is either still stored or reported by a clear
        assert len(inserted) == writers * per_writer
        assert store.count() + sum(cleared) == len(inserted)

        # A listing holds everything since the last clear: each writer's
        # messages appear as one unbroken, ordered run
        for listing in listings + [store.list_all()]:
            for writer_id in range(writers):
                own = [
                    int(r.subject.split("-")[1])
                    for r in listing
                    if r.subject.startswith(f"{writer_id}-")
                ]
                if own:
                    assert own == list(range(own[0], own[0] + len(own)))


class TestRetention:
    """Test truncate and tail"""

    def test_truncate_keeps_earliest(self, store, make_record):
        records = insert_numbered(store, make_record, 5)

        assert store.truncate(2) == 3
        assert store.list_all() == records[:2]

    def test_truncate_within_limit_is_noop(self, store, make_record):
        records = insert_numbered(store, make_record, 3)

        assert store.truncate(3) == 0
        assert store.truncate(10) == 0
        assert store.list_all() == records

    def test_truncate_to_zero(self, store, make_record):
        insert_numbered(store, make_record, 3)

        assert store.truncate(0) == 3
        assert store.count() == 0

    def test_tail_keeps_latest(self, store, make_record):
        records = insert_numbered(store, make_record, 5)

        assert store.tail(2) == 3
        assert store.list_all() == records[3:]

    def test_tail_renumbers_survivors(self, store, make_record):
        insert_numbered(store, make_record, 4)
        store.tail(2)
        newest = make_record(subject="newest")
        store.insert(newest)

        subjects = [r.subject for r in store.list_all()]
        assert subjects == ["message 2", "message 3", "newest"]

    def test_tail_renumbers_when_rows_are_stored_out_of_order(self, store, make_record):
        insert_numbered(store, make_record, 4)
        # Reverse the numbering so the earliest rows hold the highest numbers
        with store._session_factory.begin() as session:
            session.execute(text("UPDATE captured_message SET sequence_number = -sequence_number - 1"))
            session.execute(text("UPDATE captured_message SET sequence_number = sequence_number + 4"))

        assert store.tail(3) == 1

        subjects = [r.subject for r in store.list_all()]
        assert subjects == ["message 2", "message 1", "message 0"]
        store.insert(make_record(subject="newest"))
        assert [r.subject for r in store.list_all()][-1] == "newest"

    def test_tail_within_limit_is_noop(self, store, make_record):
        records = insert_numbered(store, make_record, 2)

        assert store.tail(5) == 0
        assert store.list_all() == records

    @pytest.mark.parametrize("operation", ["truncate", "tail"])
    def test_negative_keep_rejected(self, store, operation):
        with pytest.raises(ValueError):
            getattr(store, operation)(-1)


class TestRawSource:
    """Test raw message retrieval by listing position"""

    def test_get_raw_by_position(self, store, make_record):
        store.insert(make_record(subject="first"), raw=b"raw one")
        store.insert(make_record(subject="second"), raw=b"raw two")

        assert store.get_raw(0) == b"raw one"
        assert store.get_raw(1) == b"raw two"

    def test_get_raw_missing_position(self, store):
        assert store.get_raw(7) is None

    def test_get_raw_follows_tail_renumbering(self, store, make_record):
        store.insert(make_record(subject="old"), raw=b"old")
        store.insert(make_record(subject="new"), raw=b"new")
        store.tail(1)

        assert store.get_raw(0) == b"new"


class TestStoreUnavailable:
    """Test that database failures surface as StoreUnavailable"""

    @pytest.fixture
    def broken_store(self):
        # Schema never created: every statement fails with "no such table"
        engine = create_db_engine("sqlite://")
        yield SqlMailStore(create_session_factory(engine))
        engine.dispose()

    def test_insert_fails(self, broken_store, make_record):
        with pytest.raises(StoreUnavailable):
            broken_store.insert(make_record())

    def test_list_fails(self, broken_store):
        with pytest.raises(StoreUnavailable):
            broken_store.list_all()

    def test_clear_fails(self, broken_store):
        with pytest.raises(StoreUnavailable):
            broken_store.clear_all()

    def test_ping_needs_no_schema(self, broken_store, store):
        store.ping()
        # SELECT 1 needs no table, so the schema-less store still answers
        broken_store.ping()

    def test_store_recovers_after_failure(self, store, make_record, engine):
        with engine.begin() as connection:
            connection.exec_driver_sql("ALTER TABLE captured_message RENAME TO captured_message_moved")

        with pytest.raises(StoreUnavailable):
            store.list_all()

        with engine.begin() as connection:
            connection.exec_driver_sql("ALTER TABLE captured_message_moved RENAME TO captured_message")

        record = make_record()
        store.insert(record)
        assert store.list_all() == [record]
