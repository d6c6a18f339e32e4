from __future__ import annotations

from django.contrib.auth import get_user_model

User = get_user_model()

DEFAULT_PASSWORD = "TestPass123!"  # noqa: S105 - test credentials only


def make_user(
    username: str = "reader",
    *,
    role: str = User.Role.SUBSCRIBER,
    password: str = DEFAULT_PASSWORD,
    is_staff: bool = False,
    **extra,
) -> User:
    extra.setdefault("email", f"{username}@example.com")
    return User.objects.create_user(
        username=username,
        password=password,
        role=role,
        is_staff=is_staff,
        **extra,
    )


def make_admin(username: str = "editor-in-chief", **extra) -> User:
    return make_user(username, role=User.Role.ADMIN, **extra)
