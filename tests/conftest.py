from datetime import timedelta

import pytest

from passwordless.application.registry import Passwordless
from passwordless.infrastructure.db.session_store import PgSessionStore
from passwordless.settings import get_settings
from tests.fakes import TEST_ROUNDS, FakeGenerator, FakePool, FakeTransport


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def pool():
    return FakePool()


@pytest.fixture()
def store(pool):
    return PgSessionStore(pool, bcrypt_rounds=TEST_ROUNDS)


@pytest.fixture()
def generator():
    return FakeGenerator(token="1337")


@pytest.fixture()
def transport():
    return FakeTransport()


@pytest.fixture()
def pw(store, transport, generator):
    p = Passwordless(store)
    p.set_transport("test", transport, generator, timedelta(minutes=5))
    return p
