from django.contrib import admin
from django.contrib.auth import admin as auth_admin
from django.utils.translation import gettext_lazy as _

from farming_magazine.users.models import LoginAttempt
from farming_magazine.users.models import User


@admin.register(User)
class UserAdmin(auth_admin.UserAdmin):
    fieldsets = (
        *auth_admin.UserAdmin.fieldsets,
        (_("Role"), {"fields": ("role",)}),
        (
            _("Login security"),
            {
                "fields": (
                    "account_locked",
                    "locked_until",
                    "known_ips",
                    "last_login_ip",
                ),
            },
        ),
    )
    list_display = ["username", "email", "name", "role", "account_locked", "is_active"]
    list_filter = ["role", "account_locked", "is_active", "is_staff"]
    search_fields = ["username", "email", "name"]


@admin.register(LoginAttempt)
class LoginAttemptAdmin(admin.ModelAdmin):
    list_display = ["id", "user", "timestamp", "success", "ip_address"]
    list_filter = ["success", "timestamp"]
    search_fields = ["user__username", "ip_address"]
