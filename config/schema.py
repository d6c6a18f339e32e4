"""drf-spectacular postprocessing hook that groups operations by feature.

Registered as ``SPECTACULAR_SETTINGS["POSTPROCESSING_HOOKS"]``. Every
operation under a known URL prefix is retagged with exactly one section name,
so Swagger UI shows Users, Notifications, Realtime, ... instead of the
generic ``api`` tag derived from the router.
"""

from __future__ import annotations

from typing import Any

_OPERATION_KEYS = frozenset(
    {"get", "post", "put", "patch", "delete", "options", "head"},
)

# First match wins, so more specific prefixes go first.
PATTERN_TAGS: list[tuple[str, str]] = [
    ("/api/v1/auth/jwt", "JWT Authentication"),
    ("/api/v1/auth/login", "Session Auth"),
    ("/api/v1/auth/logout", "Session Auth"),
    ("/api/v1/auth/password", "Session Auth"),
    ("/api/v1/auth/", "Authentication"),
    ("/api/v1/users", "Users"),
    ("/api/v1/notifications", "Notifications"),
    ("/api/v1/realtime", "Realtime"),
    ("/api/v1/audit", "Audit"),
]

ALL_TAGS = list(dict.fromkeys(tag for _, tag in PATTERN_TAGS))


def assign_group_tag(path: str) -> str | None:
    return next(
        (tag for prefix, tag in PATTERN_TAGS if path.startswith(prefix)),
        None,
    )


def group_tags(result: dict[str, Any], **kwargs: Any) -> dict[str, Any]:
    for path, path_item in result.get("paths", {}).items():
        tag = assign_group_tag(path)
        if tag is None:
            continue
        for method, operation in path_item.items():
            if method.lower() in _OPERATION_KEYS and isinstance(operation, dict):
                operation["tags"] = [tag]

    declared = result.setdefault("tags", [])
    known = {entry.get("name") for entry in declared}
    declared.extend({"name": tag} for tag in ALL_TAGS if tag not in known)
    return result
