"""Shared route dependencies: caller credential and vendor services."""

from __future__ import annotations

from fastapi import Header, HTTPException, Request

from ..minimax.errors import AuthMissing
from ..minimax.identity import Credential


def require_credential(
    authorization: str | None = Header(default=None),
) -> Credential:
    if not authorization or not authorization.strip():
        missing = AuthMissing()
        raise HTTPException(status_code=missing.status_code, detail=missing.detail)
    return Credential.parse(authorization)


def app_service(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise HTTPException(status_code=500, detail=f"{name} unavailable")
    return service


__all__ = ["app_service", "require_credential"]
