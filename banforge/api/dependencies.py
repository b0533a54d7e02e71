"""FastAPI dependencies."""

from __future__ import annotations

import secrets

from fastapi import Header, Request

from ..app import ServiceApp
from ..domain.exceptions import Unauthorized


def get_service_app(request: Request) -> ServiceApp:
    return request.app.state.service


async def require_admin(
    request: Request,
    x_admin_auth: str | None = Header(default=None),
) -> None:
    """Compare the ``x-admin-auth`` header with the configured secret."""
    expected = get_service_app(request).config.admin.secret
    if not expected or x_admin_auth is None:
        raise Unauthorized("Admin authentication required")
    if not secrets.compare_digest(x_admin_auth.encode(), expected.encode()):
        raise Unauthorized("Invalid admin credentials")
