from django.contrib import admin

from farming_magazine.audit import models


@admin.register(models.AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ["id", "action", "actor", "severity", "status", "ip_address"]
    search_fields = ["action", "message", "model_name", "ip_address"]
    list_filter = ["severity", "status", "created_at"]
