from django.contrib import admin

from farming_magazine.notifications import models


@admin.register(models.Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ["id", "recipient", "title", "notification_type", "priority"]
    search_fields = ["title", "message", "notification_type", "related_link"]
    list_filter = ["notification_type", "priority", "is_read", "created_at"]
