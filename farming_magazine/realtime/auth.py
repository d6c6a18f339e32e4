"""Handshake authentication for the realtime endpoint.

Clients connect to ``ws://<host>/ws/notifications/?token=<JWT access token>``.
The token is verified with SimpleJWT; any failure denies the upgrade.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs

from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import TokenError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RealtimeIdentity:
    user_id: int
    role: str


def extract_token(scope: dict[str, Any]) -> str | None:
    """Pull the ``token`` query parameter out of an ASGI scope."""

    query_string: str | bytes = scope.get("query_string", b"")
    if isinstance(query_string, (bytes, bytearray)):
        query_string = query_string.decode(errors="ignore")

    token = parse_qs(str(query_string)).get("token", [None])[0]
    if isinstance(token, str) and token:
        return token
    return None


def authenticate(token: str | None) -> RealtimeIdentity | None:
    """Validate an access token and resolve the connecting user.

    Returns ``None`` instead of raising so the transport can simply refuse the
    upgrade. Touches the database; call through ``database_sync_to_async``
    from async code.
    """

    if not token:
        logger.info("Realtime handshake rejected: no token provided")
        return None

    jwt_auth = JWTAuthentication()
    try:
        validated = jwt_auth.get_validated_token(token)
        user = jwt_auth.get_user(validated)
    except TokenError as exc:
        logger.info("Realtime handshake rejected: %s", exc)
        return None
    except AuthenticationFailed as exc:  # invalid token, unknown or inactive user
        logger.info("Realtime handshake rejected: %s", exc.detail)
        return None

    return RealtimeIdentity(user_id=int(user.pk), role=str(user.role))
