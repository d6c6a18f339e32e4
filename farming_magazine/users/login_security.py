"""Login attempt tracking and temporary account lockout.

Policy (overridable through ``settings.LOGIN_SECURITY``):

- attempts are kept for a trailing ``ATTEMPT_WINDOW`` (15 minutes);
- ``MAX_ATTEMPTS`` (5) failures inside the window lock the account for
  ``LOCKOUT_DURATION`` (30 minutes) from the failure that tripped it;
- a lock expires lazily: the first ``check_lock`` after ``locked_until``
  unlocks the account and clears its attempt history. The Celery task
  ``users.clear_expired_lockouts`` does the same proactively.

Attempt recording is a read-modify-write on the account, so it runs inside a
transaction holding a row lock on the user. Database errors propagate: a
login must not count as processed until its attempt is stored.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from datetime import timedelta
from typing import Any

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from farming_magazine.audit.models import AuditLog
from farming_magazine.audit.utils import log_security_event

from .models import LoginAttempt
from .models import User

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_SECURITY: dict[str, Any] = {
    "MAX_ATTEMPTS": 5,
    "ATTEMPT_WINDOW": timedelta(minutes=15),
    "LOCKOUT_DURATION": timedelta(minutes=30),
    # Inclusive local-time hour range treated as unusual for a login.
    "UNUSUAL_HOURS": (0, 5),
}

FACTOR_NEW_IP = "new IP address"
FACTOR_UNUSUAL_TIME = "unusual login time"

_LOCK_FIELDS = ["account_locked", "locked_until", "updated_at"]


@dataclass(frozen=True)
class LoginSecurityPolicy:
    max_attempts: int
    attempt_window: timedelta
    lockout_duration: timedelta
    unusual_hours: tuple[int, int]


@dataclass(frozen=True)
class LockStatus:
    locked: bool
    remaining_minutes: int | None = None

    def as_dict(self) -> dict[str, Any]:
        if not self.locked:
            return {"locked": False}
        return {"locked": True, "remaining_minutes": self.remaining_minutes}


def get_policy() -> LoginSecurityPolicy:
    conf = {**DEFAULT_LOGIN_SECURITY, **getattr(settings, "LOGIN_SECURITY", {})}
    start, end = conf["UNUSUAL_HOURS"]
    return LoginSecurityPolicy(
        max_attempts=int(conf["MAX_ATTEMPTS"]),
        attempt_window=conf["ATTEMPT_WINDOW"],
        lockout_duration=conf["LOCKOUT_DURATION"],
        unusual_hours=(int(start), int(end)),
    )


def _lock_in_force(user: User, now: datetime) -> bool:
    return bool(user.account_locked and user.locked_until and now < user.locked_until)


def _lock_expired(user: User, now: datetime) -> bool:
    if not user.account_locked:
        return False
    return user.locked_until is None or now >= user.locked_until


def _release_lock(user: User) -> None:
    LoginAttempt.objects.filter(user=user).delete()
    user.account_locked = False
    user.locked_until = None
    user.save(update_fields=_LOCK_FIELDS)


def record_attempt(
    user: User,
    success: bool,  # noqa: FBT001
    ip: str = "",
    user_agent: str = "",
    *,
    now: datetime | None = None,
) -> bool:
    """Store a login attempt and lock the account when failures pile up.

    Returns whether the account is locked after this attempt. A lock already
    in force is never extended by further failures.
    """

    policy = get_policy()
    now = now or timezone.now()

    with transaction.atomic():
        account = User.objects.select_for_update().get(pk=user.pk)
        if _lock_expired(account, now):
            _release_lock(account)

        LoginAttempt.objects.filter(
            user=account,
            timestamp__lt=now - policy.attempt_window,
        ).delete()
        LoginAttempt.objects.create(
            user=account,
            timestamp=now,
            success=success,
            ip_address=ip or "",
            user_agent=user_agent or "",
        )
        failed = LoginAttempt.objects.filter(user=account, success=False).count()

        if failed >= policy.max_attempts and not _lock_in_force(account, now):
            account.account_locked = True
            account.locked_until = now + policy.lockout_duration
            account.save(update_fields=_LOCK_FIELDS)
            lockout_minutes = int(policy.lockout_duration.total_seconds() // 60)
            logger.warning(
                "Account %s locked after %s failed login attempts",
                account.pk,
                failed,
            )
            log_security_event(
                "account_locked",
                actor=account,
                severity=AuditLog.Severity.HIGH,
                details={
                    "reason": "Too many failed login attempts",
                    "failedAttempts": failed,
                    "lockoutDuration": f"{lockout_minutes} minutes",
                },
                ip_address=ip,
                user_agent=user_agent,
            )

    user.account_locked = account.account_locked
    user.locked_until = account.locked_until
    return account.account_locked


def check_lock(user: User, *, now: datetime | None = None) -> LockStatus:
    """Report the lock state, unlocking the account if the lock has run out."""

    if not user.account_locked:
        return LockStatus(locked=False)

    now = now or timezone.now()
    if _lock_expired(user, now):
        with transaction.atomic():
            _release_lock(user)
        logger.info("Lockout expired for account %s", user.pk)
        return LockStatus(locked=False)

    remaining = math.ceil((user.locked_until - now).total_seconds() / 60)
    return LockStatus(locked=True, remaining_minutes=remaining)


def detect_suspicious_activity(
    user: User,
    ip: str,
    user_agent: str = "",
    *,
    now: datetime | None = None,
) -> list[str]:
    """Return the heuristics this login trips; log them when there are any."""

    policy = get_policy()
    now = now or timezone.now()
    factors: list[str] = []

    if ip and ip not in (user.known_ips or []):
        factors.append(FACTOR_NEW_IP)

    # Rapid location change needs geolocation data we do not collect yet.

    start, end = policy.unusual_hours
    if start <= timezone.localtime(now).hour <= end:
        factors.append(FACTOR_UNUSUAL_TIME)

    if factors:
        log_security_event(
            "suspicious_login",
            actor=user,
            severity=AuditLog.Severity.MEDIUM,
            details={"factors": factors, "ip": ip, "userAgent": user_agent},
            ip_address=ip,
            user_agent=user_agent,
        )
    return factors


def remember_login_ip(user: User, ip: str) -> None:
    """Add ``ip`` to the account's known addresses after a successful login."""

    if not ip:
        return
    known = list(user.known_ips or [])
    if ip not in known:
        known.append(ip)
    user.known_ips = known
    user.last_login_ip = ip
    user.save(update_fields=["known_ips", "last_login_ip", "updated_at"])


def unlock_account(user: User) -> None:
    """Lift a lock immediately (admin action)."""

    with transaction.atomic():
        _release_lock(user)
    logger.info("Account %s unlocked manually", user.pk)


def clear_expired_lockouts(*, now: datetime | None = None) -> int:
    """Proactively release every lock whose time is up. Returns the count."""

    now = now or timezone.now()
    expired = User.objects.filter(
        Q(locked_until__lte=now) | Q(locked_until__isnull=True),
        account_locked=True,
    )
    released = 0
    for user in expired.iterator():
        with transaction.atomic():
            _release_lock(user)
        released += 1
    return released
