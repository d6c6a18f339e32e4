from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.db import transaction

from .models import AuditLog

logger = logging.getLogger(__name__)


def log_action(  # noqa: PLR0913
    action: str,
    *,
    actor: object | None = None,
    message: str = "",
    resource: str = "",
    model_name: str = "",
    record_id: int | None = None,
    before: dict | list | None = None,
    after: dict | list | None = None,
    details: dict | None = None,
    ip_address: str = "",
    user_agent: str = "",
    status: str = AuditLog.Status.SUCCESS,
    severity: str = AuditLog.Severity.LOW,
) -> AuditLog:
    user_model = get_user_model()
    actor_user = actor if isinstance(actor, user_model) else None
    return AuditLog.objects.create(
        action=action,
        actor=actor_user,
        message=message,
        resource=resource,
        model_name=model_name,
        record_id=record_id,
        before=before,
        after=after,
        details=details or {},
        ip_address=ip_address or "",
        user_agent=user_agent or "",
        status=status,
        severity=severity,
    )


def log_security_event(  # noqa: PLR0913
    action: str,
    *,
    actor: object | None = None,
    severity: str,
    details: dict | None = None,
    ip_address: str = "",
    user_agent: str = "",
    status: str = AuditLog.Status.WARNING,
) -> AuditLog | None:
    """Best-effort security log entry.

    Runs in its own savepoint and swallows storage errors, so a broken audit
    table never aborts the login or connection flow it is attached to.
    """

    try:
        with transaction.atomic():
            return log_action(
                action,
                actor=actor,
                resource="authentication",
                details=details,
                ip_address=ip_address,
                user_agent=user_agent,
                status=status,
                severity=severity,
            )
    except Exception:  # noqa: BLE001 - security logging is best-effort
        logger.exception("Failed to write security log entry %r", action)
        return None
