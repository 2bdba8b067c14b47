import pytest
from fastapi.testclient import TestClient

from tinylink.database import make_engine
from tinylink.main import create_app
from tinylink.service import LinkService
from tinylink.store import MemoryLinkStore, SqlLinkStore


@pytest.fixture
def sql_store():
    store = SqlLinkStore(make_engine("sqlite://"))
    store.setup()
    yield store
    store.engine.dispose()


@pytest.fixture
def memory_store():
    return MemoryLinkStore()


@pytest.fixture(params=["sql", "memory"])
def store(request):
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def service(store):
    return LinkService(store)


@pytest.fixture
def client(sql_store):
    app = create_app(LinkService(sql_store))
    return TestClient(app)
