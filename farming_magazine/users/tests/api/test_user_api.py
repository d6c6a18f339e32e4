import pytest
from rest_framework import status
from rest_framework.test import APIClient

from farming_magazine.audit.models import AuditLog
from farming_magazine.users.login_security import record_attempt
from farming_magazine.users.tests.factories import make_admin
from farming_magazine.users.tests.factories import make_user

pytestmark = pytest.mark.django_db


def client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


def lock(user):
    for _ in range(5):
        record_attempt(user, success=False, ip="203.0.113.9")


@pytest.fixture
def reader():
    return make_user("immut001", first_name="Old", last_name="Name")


def test_can_update_first_last_name_only(reader):
    r = client_for(reader).patch(
        f"/api/v1/users/{reader.username}/",
        {"first_name": "New", "last_name": "Value"},
        format="json",
    )
    assert r.status_code == status.HTTP_200_OK, r.data
    reader.refresh_from_db()
    assert reader.first_name == "New"
    assert reader.last_name == "Value"
    assert reader.name == "New Value"
    assert AuditLog.objects.filter(action="user_updated", actor=reader).exists()


def test_reject_identity_and_access_changes(reader):
    r = client_for(reader).patch(
        f"/api/v1/users/{reader.username}/",
        {"username": "hacked", "email": "hack@example.com", "role": "admin"},
        format="json",
    )
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert set(r.data) == {"username", "email", "role"}
    reader.refresh_from_db()
    assert reader.username == "immut001"
    assert reader.role == "subscriber"


def test_me(reader):
    r = client_for(reader).get("/api/v1/users/me/")
    assert r.status_code == status.HTTP_200_OK
    assert r.data["username"] == "immut001"
    assert r.data["role"] == "subscriber"
    assert r.data["url"].endswith("/api/v1/users/immut001/")


def test_list_scoped_to_self_for_subscribers(reader):
    make_user("someone-else")

    r = client_for(reader).get("/api/v1/users/")

    assert [u["username"] for u in r.data] == ["immut001"]


def test_admin_lists_everyone(reader):
    admin = make_admin()

    r = client_for(admin).get("/api/v1/users/")

    assert {u["username"] for u in r.data} == {"immut001", admin.username}


def test_lock_status_for_admin(reader):
    lock(reader)

    r = client_for(make_admin()).get(f"/api/v1/users/{reader.username}/lock-status/")

    assert r.status_code == status.HTTP_200_OK
    assert r.data["locked"] is True
    assert r.data["remaining_minutes"] == 30  # noqa: PLR2004


def test_lock_status_unlocked(reader):
    r = client_for(make_admin()).get(f"/api/v1/users/{reader.username}/lock-status/")
    assert r.data == {"locked": False}


def test_lock_status_forbidden_for_subscribers(reader):
    r = client_for(reader).get(f"/api/v1/users/{reader.username}/lock-status/")
    assert r.status_code == status.HTTP_403_FORBIDDEN


def test_staff_counts_as_admin(reader):
    staff = make_user("staffer", is_staff=True)
    r = client_for(staff).get(f"/api/v1/users/{reader.username}/lock-status/")
    assert r.status_code == status.HTTP_200_OK


def test_unlock_is_audited(reader):
    lock(reader)
    admin = make_admin()

    r = client_for(admin).post(f"/api/v1/users/{reader.username}/unlock/")

    assert r.status_code == status.HTTP_200_OK
    reader.refresh_from_db()
    assert reader.account_locked is False
    entry = AuditLog.objects.get(action="account_unlocked")
    assert entry.actor == admin
    assert entry.record_id == reader.pk


def test_unlock_forbidden_for_subscribers(reader):
    lock(reader)

    r = client_for(reader).post(f"/api/v1/users/{reader.username}/unlock/")

    assert r.status_code == status.HTTP_403_FORBIDDEN
    reader.refresh_from_db()
    assert reader.account_locked is True
