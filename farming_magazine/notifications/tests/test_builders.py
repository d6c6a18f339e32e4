import pytest

from farming_magazine.notifications.builders import build_notification
from farming_magazine.notifications.builders import create_notification
from farming_magazine.notifications.models import Notification


def test_article_published_template():
    fields = build_notification(
        Notification.Type.ARTICLE_PUBLISHED,
        {"title": "Soil health", "author": "Ama"},
    )
    assert fields["title"] == "New Article Published"
    assert fields["message"] == 'Article "Soil health" by Ama has been published'
    assert fields["category"] == "article"
    assert fields["priority"] == Notification.Priority.HIGH
    assert fields["data"] == {"title": "Soil health", "author": "Ama"}


def test_newsletter_template():
    fields = build_notification(
        Notification.Type.NEWSLETTER_SENT,
        {"subject": "March issue", "recipientCount": 120},
    )
    assert fields["message"] == 'Newsletter "March issue" sent to 120 subscribers'


def test_unknown_type_rejected():
    with pytest.raises(ValueError, match="No notification template"):
        build_notification("harvest_festival", {})


@pytest.mark.django_db
def test_create_notification_persists(user):
    notification = create_notification(
        user.pk,
        Notification.Type.COMMENT_ADDED,
        {"articleTitle": "Irrigation"},
        related_link="/articles/irrigation",
    )
    notification.refresh_from_db()
    assert notification.recipient == user
    assert notification.message == 'New comment on "Irrigation"'
    assert notification.priority == Notification.Priority.LOW
    assert notification.related_link == "/articles/irrigation"
    assert notification.is_read is False
