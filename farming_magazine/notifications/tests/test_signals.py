import pytest

from farming_magazine.notifications.builders import create_notification
from farming_magazine.notifications.models import Notification
from farming_magazine.realtime.registry import MessageType
from farming_magazine.realtime.tests.fakes import FakeTransport
from farming_magazine.users.tests.factories import make_admin
from farming_magazine.users.tests.factories import make_user

pytestmark = pytest.mark.django_db


def test_new_notification_pushed_after_commit(
    user, realtime_registry, django_capture_on_commit_callbacks
):
    transport = FakeTransport()
    realtime_registry.register(transport, user.pk, user.role)

    with django_capture_on_commit_callbacks(execute=True):
        notification = create_notification(
            user.pk, Notification.Type.SYSTEM_UPDATE, {"message": "v2 is live"}
        )

    [frame] = transport.frames_of(MessageType.NOTIFICATION)
    assert frame["id"] == notification.pk
    assert frame["message"] == "v2 is live"
    assert frame["notificationType"] == "system_update"
    assert frame["link"] == ""


def test_nothing_pushed_before_commit(user, realtime_registry):
    transport = FakeTransport()
    realtime_registry.register(transport, user.pk, user.role)

    create_notification(user.pk, Notification.Type.SYSTEM_UPDATE, {"message": "x"})

    assert transport.frames_of(MessageType.NOTIFICATION) == []


def test_signup_announced_to_subscribed_admins(
    realtime_registry, django_capture_on_commit_callbacks
):
    admin = make_admin()
    transport = FakeTransport()
    connection = realtime_registry.register(transport, admin.pk, admin.role)
    realtime_registry.handle_inbound_message(connection, {"type": "subscribe_admin"})

    with django_capture_on_commit_callbacks(execute=True):
        make_user("new-grower")

    [frame] = transport.frames_of(MessageType.ADMIN_NOTIFICATION)
    assert frame["title"] == "New User Registration"
    assert frame["message"] == "New user new-grower has registered"
