from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from farming_magazine.audit.models import AuditLog

pytestmark = pytest.mark.django_db


def get_recent(user, **params):
    client = APIClient()
    client.force_authenticate(user=user)
    return client.get(reverse("api_v1:audit:recent"), params)


def seed(count=6, **fields):
    base = timezone.now()
    created = [
        AuditLog.objects.create(action=f"test_action_{i}", message=str(i), **fields)
        for i in range(count)
    ]
    # Deterministic timestamps so ordering is stable.
    for i, row in enumerate(created):
        AuditLog.objects.filter(pk=row.pk).update(
            created_at=base + timedelta(seconds=i)
        )
    return created


def test_recent_audit_requires_admin(user, admin_role_user):
    assert get_recent(user).status_code == status.HTTP_403_FORBIDDEN
    assert get_recent(admin_role_user).status_code == status.HTTP_200_OK


def test_recent_audit_returns_latest_5(admin_role_user):
    AuditLog.objects.all().delete()
    seed()

    res = get_recent(admin_role_user)

    assert res.status_code == status.HTTP_200_OK
    assert res.data["limit"] == 5  # noqa: PLR2004
    actions = [r["action"] for r in res.data["results"]]
    assert actions == [
        "test_action_5",
        "test_action_4",
        "test_action_3",
        "test_action_2",
        "test_action_1",
    ]


def test_recent_audit_limit_is_clamped(admin_role_user):
    seed(3)
    assert get_recent(admin_role_user, limit="0").data["limit"] == 1
    assert get_recent(admin_role_user, limit="500").data["limit"] == 50  # noqa: PLR2004
    assert get_recent(admin_role_user, limit="abc").data["limit"] == 5  # noqa: PLR2004


def test_recent_audit_filters_by_severity(admin_role_user):
    seed(2)
    AuditLog.objects.create(action="account_locked", severity=AuditLog.Severity.HIGH)

    res = get_recent(admin_role_user, severity="high")

    assert [r["action"] for r in res.data["results"]] == ["account_locked"]
    assert res.data["results"][0]["severity"] == "high"
