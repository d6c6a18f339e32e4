import pytest

from farming_magazine.realtime import registry as registry_module
from farming_magazine.realtime.registry import ConnectionRegistry
from farming_magazine.users.models import User
from farming_magazine.users.tests.factories import make_admin
from farming_magazine.users.tests.factories import make_user


@pytest.fixture(autouse=True)
def _media_storage(settings, tmpdir) -> None:
    settings.MEDIA_ROOT = tmpdir.strpath


@pytest.fixture
def user(db) -> User:
    return make_user()


@pytest.fixture
def admin_role_user(db) -> User:
    return make_admin()


@pytest.fixture
def realtime_registry(monkeypatch) -> ConnectionRegistry:
    """A fresh process registry, swapped in for the duration of one test."""

    fresh = ConnectionRegistry()
    monkeypatch.setattr(registry_module, "_registry", fresh)
    yield fresh
    if fresh.sweeper is not None:
        fresh.sweeper.stop()
