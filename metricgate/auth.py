"""Admin API key guard for metricgate's ops endpoints.

Controlled by ``MG_ADMIN_KEYS``, a comma-separated list of valid keys.  When
it is empty the guard is **disabled** (dev mode).

Clients supply the key via:
- ``Authorization: Bearer <key>`` header (preferred)
- ``X-API-Key`` header
"""

from __future__ import annotations

import hmac
import logging

from fastapi import Request

from metricgate.config import settings
from metricgate.exceptions import AuthenticationError, ForbiddenError

_audit_logger = logging.getLogger("metricgate.audit")


def _extract_key(request: Request) -> str | None:
    """Extract the admin key.  Priority: Authorization Bearer > X-API-Key."""
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip()
    return request.headers.get("X-API-Key")


async def require_admin_key(request: Request) -> None:
    """FastAPI dependency that enforces the admin key.

    Raises:
        ForbiddenError: keys are configured but none was provided.
        AuthenticationError: the provided key is not valid.
    """
    valid_keys = settings.admin_key_set
    if not valid_keys:
        return

    key = _extract_key(request)
    client = request.client.host if request.client else "unknown"
    if key is None:
        _audit_logger.warning(
            "Admin auth failure (no key): %s %s from %s",
            request.method,
            request.url.path,
            client,
            extra={"event_category": "audit", "action": "auth_failure", "path": request.url.path},
        )
        raise ForbiddenError("Admin key required. Provide via X-API-Key or Authorization header.")

    if not any(hmac.compare_digest(key.encode(), k.encode()) for k in valid_keys):
        _audit_logger.warning(
            "Admin auth failure (invalid key): %s %s from %s",
            request.method,
            request.url.path,
            client,
            extra={"event_category": "audit", "action": "auth_failure", "path": request.url.path},
        )
        raise AuthenticationError("Invalid admin key.")
