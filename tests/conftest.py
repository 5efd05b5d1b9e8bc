"""Общие фикстуры: временная база SQLite, хранилище с управляемыми часами,
клиентские сессии и модель представления.
"""
import os
import tempfile

# Настройки читаются при первом импорте miniforum
_TEST_DIR = tempfile.mkdtemp(prefix="miniforum-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{os.path.join(_TEST_DIR, 'api.db')}")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from datetime import datetime, timedelta, timezone

import pytest

from miniforum.client.providers import LocalIdentityProvider, LocalDocumentStore
from miniforum.client.viewmodel import ForumViewModel
from miniforum.core.db import init_db, make_engine, make_session_factory
from miniforum.domains.forum.store import ForumStore
from miniforum.domains.identity.services import IdentityService


class FakeClock:
    """Серверное время, растущее на шаг при каждом чтении"""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        self.now = self.now + self.step
        return self.now


class RecordingIdentityProvider(LocalIdentityProvider):
    """Считает обращения к сервису идентификации"""

    def __init__(self, identity):
        super().__init__(identity)
        self.calls = []

    async def create_account(self, email, password):
        self.calls.append("create_account")
        return await super().create_account(email, password)

    async def sign_in(self, email, password):
        self.calls.append("sign_in")
        return await super().sign_in(email, password)


@pytest.fixture
async def engine(tmp_path):
    # файл, а не :memory: - у каждой сессии свое соединение
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'forum.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def identity_service(session_factory):
    return IdentityService(session_factory)


@pytest.fixture
def store(session_factory, clock):
    return ForumStore(session_factory, clock=clock, cascade_thread_delete=False)


@pytest.fixture
async def make_client(identity_service, store):
    """Фабрика клиентов: каждый со своей сессией и моделью представления"""
    viewmodels = []

    async def factory(confirm=lambda message: True):
        session = RecordingIdentityProvider(identity_service)
        viewmodel = ForumViewModel(session, LocalDocumentStore(store, session), confirm=confirm)
        viewmodel.start()
        await store.drain()
        viewmodels.append(viewmodel)
        return viewmodel

    yield factory

    for viewmodel in viewmodels:
        viewmodel.close()
    await store.drain()


@pytest.fixture
async def alice(make_client, store):
    viewmodel = await make_client()
    assert await viewmodel.register("alice", "a@x.com", "secret1", "secret1")
    await store.drain()
    return viewmodel


@pytest.fixture
async def bob(make_client, store):
    viewmodel = await make_client()
    assert await viewmodel.register("bob", "b@x.com", "secret2", "secret2")
    await store.drain()
    return viewmodel
