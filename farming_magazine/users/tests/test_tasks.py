from datetime import timedelta

import pytest
from django.utils import timezone

from config.celery_app import app
from farming_magazine.users.tasks import clear_expired_lockouts

pytestmark = pytest.mark.django_db


def test_clear_expired_lockouts_task(user):
    user.account_locked = True
    user.locked_until = timezone.now() - timedelta(minutes=1)
    user.save()

    result = clear_expired_lockouts.delay()

    assert result.get() == 1
    user.refresh_from_db()
    assert user.account_locked is False
    assert user.locked_until is None


def test_lockout_sweep_is_scheduled():
    entry = app.conf.beat_schedule["clear-expired-lockouts"]
    assert entry["task"] == clear_expired_lockouts.name
