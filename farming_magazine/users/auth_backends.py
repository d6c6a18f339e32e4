import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend
from django.core.exceptions import PermissionDenied

from .login_security import check_lock
from .login_security import detect_suspicious_activity
from .login_security import record_attempt
from .login_security import remember_login_ip
from .utils import get_client_ip
from .utils import get_user_agent

logger = logging.getLogger(__name__)


def find_user_by_identifier(identifier):
    """Resolve a login identifier (email first, then username)."""
    if not identifier:
        return None
    usermodel = get_user_model()
    try:
        return usermodel.objects.get(email__iexact=identifier)
    except usermodel.DoesNotExist:
        try:
            return usermodel.objects.get(username__iexact=identifier)
        except usermodel.DoesNotExist:
            return None


class UsernameOrEmailBackend(ModelBackend):
    """Username-or-email login guarded by the account lockout policy.

    Every attempt against an existing account is recorded. A locked account
    raises ``PermissionDenied`` so no other backend gets a chance to log it in.
    """

    def authenticate(self, request, username=None, password=None, **kwargs):
        if username is None:
            username = kwargs.get(get_user_model().USERNAME_FIELD)
        if username is None or password is None:
            return None

        user = find_user_by_identifier(username)
        if user is None:
            return None

        ip = get_client_ip(request) if request is not None else ""
        user_agent = get_user_agent(request) if request is not None else ""

        status = check_lock(user)
        if status.locked:
            record_attempt(user, success=False, ip=ip, user_agent=user_agent)
            logger.info(
                "Rejected login for locked account %s (%s min left)",
                user.pk,
                status.remaining_minutes,
            )
            msg = "account locked"
            raise PermissionDenied(msg)

        if user.check_password(password) and self.user_can_authenticate(user):
            record_attempt(user, success=True, ip=ip, user_agent=user_agent)
            detect_suspicious_activity(user, ip, user_agent)
            remember_login_ip(user, ip)
            return user

        record_attempt(user, success=False, ip=ip, user_agent=user_agent)
        return None
