from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import CharField
from django.db.models import EmailField
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class User(AbstractUser):
    """
    Default custom user model for farming_magazine.
    Staff accounts (admins, editors) and subscribers share this model; the
    ``role`` field decides what each may see in the dashboard and over the
    realtime feed.
    """

    class Role(models.TextChoices):
        ADMIN = "admin", _("Admin")
        EDITOR = "editor", _("Editor")
        SUBSCRIBER = "subscriber", _("Subscriber")

    # First and last name do not cover name patterns around the globe
    name = CharField(_("Full Name"), blank=True, max_length=255)
    email = EmailField(_("email address"), unique=True)
    first_name = CharField(_("First Name"), max_length=150, blank=True)
    last_name = CharField(_("Last Name"), max_length=150, blank=True)
    role = CharField(
        _("Role"),
        max_length=20,
        choices=Role.choices,
        default=Role.SUBSCRIBER,
    )

    # Login security
    account_locked = models.BooleanField(default=False)
    locked_until = models.DateTimeField(null=True, blank=True)
    known_ips = models.JSONField(default=list, blank=True)
    last_login_ip = models.CharField(max_length=64, blank=True)

    # Audit timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        # Automatically build th full name
        full_name = f"{self.first_name} {self.last_name}".strip()
        self.name = full_name
        super().save(*args, **kwargs)

    @property
    def is_admin_role(self) -> bool:
        return self.role == self.Role.ADMIN


class LoginAttempt(models.Model):
    """One authentication attempt inside the lockout window.

    Rows older than the window are pruned whenever an attempt is recorded, so
    this table only ever holds recent history.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name="login_attempts",
    )
    timestamp = models.DateTimeField(default=timezone.now)
    success = models.BooleanField(default=False)
    ip_address = models.CharField(max_length=64, blank=True)
    user_agent = models.TextField(blank=True)

    class Meta:
        ordering = ["timestamp"]
        indexes = [
            models.Index(fields=["user", "timestamp"], name="users_login_user_ts_idx"),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        outcome = "ok" if self.success else "failed"
        return f"LoginAttempt({self.user_id}, {outcome}, {self.timestamp})"
