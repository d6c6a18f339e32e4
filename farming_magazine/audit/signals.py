from django.contrib.auth.signals import user_logged_in
from django.contrib.auth.signals import user_login_failed
from django.dispatch import receiver

from farming_magazine.users.utils import get_client_ip
from farming_magazine.users.utils import get_user_agent

from .models import AuditLog
from .utils import log_action


@receiver(user_logged_in)
def on_user_logged_in(sender, request, user, **kwargs):
    ip = get_client_ip(request) if request else ""
    ua = get_user_agent(request) if request else ""
    log_action(
        "login",
        actor=user,
        resource="authentication",
        message=f"ip={ip or '-'} ua={ua or '-'}",
        ip_address=ip,
        user_agent=ua,
    )


@receiver(user_login_failed)
def on_user_login_failed(sender, credentials, request=None, **kwargs):
    ip = get_client_ip(request) if request else ""
    ua = get_user_agent(request) if request else ""
    log_action(
        "login_failed",
        resource="authentication",
        message=f"username={credentials.get('username', '-')}",
        ip_address=ip,
        user_agent=ua,
        status=AuditLog.Status.FAILURE,
    )
