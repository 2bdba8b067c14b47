from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest

from tinylink import crud
from tinylink.database import make_engine
from tinylink.errors import ConflictError, StorageError
from tinylink.service import LinkService
from tinylink.store import SqlLinkStore


def test_insert_duplicate_is_conflict_not_storage_error(store):
    store.insert("abc123", "https://example.com")
    with pytest.raises(ConflictError):
        store.insert("abc123", "https://example.org")
    assert store.find_by_code("abc123").target_url == "https://example.com"


def naive_utc(value):
    return value.astimezone(timezone.utc).replace(tzinfo=None) if value.tzinfo else value


def test_increment_unknown_code_returns_none(store):
    assert store.increment_clicks("abc123") is None


def test_increment_sets_counter_and_timestamp(store):
    store.insert("abc123", "https://example.com")
    before = datetime.now(timezone.utc)
    assert store.increment_clicks("abc123") == "https://example.com"
    after = datetime.now(timezone.utc)
    link = store.find_by_code("abc123")
    assert link.total_clicks == 1
    assert naive_utc(before) <= naive_utc(link.last_clicked_at) <= naive_utc(after)


def test_sql_click_time_never_moves_backwards(sql_store):
    sql_store.insert("abc123", "https://example.com")
    later = datetime(2024, 5, 1, 12, 30, 5, tzinfo=timezone.utc)
    earlier = datetime(2024, 5, 1, 12, 30, 1, tzinfo=timezone.utc)
    with sql_store.session_factory() as db:
        # A click stamped earlier but committed last must not rewind the time
        assert crud.increment_click(db, "abc123", later) == "https://example.com"
        assert crud.increment_click(db, "abc123", earlier) == "https://example.com"
    link = sql_store.find_by_code("abc123")
    assert link.total_clicks == 2
    assert naive_utc(link.last_clicked_at) == naive_utc(later)


def test_delete_by_code(store):
    store.insert("abc123", "https://example.com")
    assert store.delete_by_code("abc123") is True
    assert store.delete_by_code("abc123") is False
    assert store.find_by_code("abc123") is None


def test_returned_records_are_snapshots(memory_store):
    link = memory_store.insert("abc123", "https://example.com")
    link.total_clicks = 99
    assert memory_store.find_by_code("abc123").total_clicks == 0


def test_sql_store_without_schema_raises_storage_error():
    store = SqlLinkStore(make_engine("sqlite://"))
    with pytest.raises(StorageError):
        store.find_by_code("abc123")


def test_sql_store_session_usable_after_conflict(sql_store):
    sql_store.insert("abc123", "https://example.com")
    with pytest.raises(ConflictError):
        sql_store.insert("abc123", "https://example.com")
    assert sql_store.insert("def456", "https://example.com").code == "def456"


def test_sql_concurrent_redirects_do_not_lose_updates(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'links.db'}")
    store = SqlLinkStore(engine)
    store.setup()
    service = LinkService(store)
    link = service.create_link("https://example.com/docs")

    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(lambda _: service.resolve(link.code), range(40)))

    fetched = service.get_link(link.code)
    assert fetched.total_clicks == 40
    assert fetched.last_clicked_at is not None
    engine.dispose()
