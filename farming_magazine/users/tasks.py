from celery import shared_task

from farming_magazine.users.login_security import clear_expired_lockouts as _clear


@shared_task(name="users.clear_expired_lockouts")
def clear_expired_lockouts() -> int:
    """Release account locks whose lockout period has passed.

    Locks also expire lazily on the next login check; this sweep keeps the
    admin dashboard and lock-status endpoint accurate in between.

    Returns:
        Number of accounts unlocked.
    """
    return _clear()
