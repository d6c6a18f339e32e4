import pytest

from farming_magazine.users.models import LoginAttempt
from farming_magazine.users.models import User
from farming_magazine.users.tests.factories import make_user

pytestmark = pytest.mark.django_db


def test_full_name_built_on_save():
    user = make_user("grower", first_name="Ada", last_name="Obi")
    assert user.name == "Ada Obi"


def test_defaults(user: User):
    assert user.role == User.Role.SUBSCRIBER
    assert user.is_admin_role is False
    assert user.account_locked is False
    assert user.locked_until is None
    assert user.known_ips == []


def test_login_attempts_follow_user(user: User):
    LoginAttempt.objects.create(user=user, success=False, ip_address="10.0.0.1")
    user.delete()
    assert not LoginAttempt.objects.exists()
