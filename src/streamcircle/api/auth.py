"""Static admin token authentication for room management."""

from __future__ import annotations

import secrets

from fastapi import Depends, HTTPException, Request
from fastapi.security import APIKeyHeader

_admin_header = APIKeyHeader(name="x-admin-token", auto_error=False)


async def require_admin(
    request: Request,
    token: str | None = Depends(_admin_header),
) -> None:
    """Validate the x-admin-token header against SERVER_ADMIN_TOKEN."""
    expected = request.app.state.config.admin_token
    if not token or not expected or not secrets.compare_digest(
        token.encode(), expected.encode()
    ):
        raise HTTPException(status_code=401, detail="invalid admin token")
