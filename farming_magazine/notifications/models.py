from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Notification(models.Model):
    class Type(models.TextChoices):
        USER_REGISTERED = "user_registered", _("User Registered")
        ARTICLE_PUBLISHED = "article_published", _("Article Published")
        COMMENT_ADDED = "comment_added", _("Comment Added")
        NEWSLETTER_SENT = "newsletter_sent", _("Newsletter Sent")
        SYSTEM_UPDATE = "system_update", _("System Update")
        ADMIN_ALERT = "admin_alert", _("Admin Alert")
        BROADCAST = "broadcast", _("Broadcast")
        OTHER = "other", _("Other")

    class Priority(models.TextChoices):
        LOW = "low", _("Low")
        MEDIUM = "medium", _("Medium")
        HIGH = "high", _("High")
        CRITICAL = "critical", _("Critical")

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications"
    )
    title = models.CharField(max_length=255)
    message = models.TextField()
    notification_type = models.CharField(
        max_length=50, choices=Type.choices, default=Type.OTHER
    )
    category = models.CharField(max_length=50, blank=True, default="")
    priority = models.CharField(
        max_length=20, choices=Priority.choices, default=Priority.MEDIUM
    )
    data = models.JSONField(default=dict, blank=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    related_link = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.title} - {self.recipient}"
