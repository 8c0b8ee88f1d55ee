import pytest

from workspace_backend.config import Settings
from workspace_backend.main import create_app
from workspace_backend.store import MemoryKV

from .fakes import BOT_TOKEN, FakeTelegram


@pytest.fixture()
def settings() -> Settings:
    return Settings(bot_token=BOT_TOKEN, frontend_url="https://front.test/app")


@pytest.fixture()
def kv() -> MemoryKV:
    return MemoryKV()


@pytest.fixture()
def telegram() -> FakeTelegram:
    return FakeTelegram()


@pytest.fixture()
def app(settings, kv, telegram):
    return create_app(settings, kv=kv, telegram=telegram)


@pytest.fixture()
def client(app):
    return app.test_client()
