"""Dependency helpers for tenant and operator resolution."""

import re

from fastapi import Header, HTTPException, Request

from ..services import OrderLifecycleService

# Tenant ids end up in database names, so only a safe alphabet is accepted
TENANT_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def get_tenant_id(x_tenant_id: str | None = Header(default=None)) -> str:
    """Return the restaurant identifier from the ``X-Tenant-ID`` header.

    Raises:
        HTTPException: If the header is missing or malformed.
    """
    if not x_tenant_id:
        raise HTTPException(400, "Missing X-Tenant-ID")
    if not TENANT_ID_RE.match(x_tenant_id):
        raise HTTPException(400, "Invalid X-Tenant-ID")
    return x_tenant_id


def get_operator(x_user: str | None = Header(default=None)) -> str | None:
    """Return the operator name recorded in the status history, if sent."""
    return x_user or None


def get_lifecycle(request: Request) -> OrderLifecycleService:
    return request.app.state.lifecycle
