from __future__ import annotations


def get_client_ip(request) -> str:
    """Best-effort remote client IP extraction.

    Prefers `X-Forwarded-For` (first hop) when present, otherwise falls back to
    `REMOTE_ADDR`.
    """
    meta = getattr(request, "META", {}) or {}
    xff = meta.get("HTTP_X_FORWARDED_FOR")
    if xff:
        # XFF format: client, proxy1, proxy2
        return str(xff).split(",")[0].strip()
    real_ip = meta.get("HTTP_X_REAL_IP")
    if real_ip:
        return str(real_ip).strip()
    ra = meta.get("REMOTE_ADDR")
    return str(ra).strip() if ra else ""


def get_user_agent(request) -> str:
    meta = getattr(request, "META", {}) or {}
    return str(meta.get("HTTP_USER_AGENT", "") or "")
