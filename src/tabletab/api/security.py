from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tabletab.application.errors import InvalidCredentialsError, MissingCredentialsError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class StaffPrincipal:
    subject: str | None
    claims: dict[str, Any] = field(default_factory=dict)


def verify_staff_token(token: str) -> StaffPrincipal:
    secret = os.getenv("ADMIN_JWT_SECRET")
    if not secret:
        logger.error("staff_auth_not_configured", extra={"reason": "ADMIN_JWT_SECRET missing"})
        raise InvalidCredentialsError("staff authentication is not configured")

    audience = os.getenv("ADMIN_JWT_AUDIENCE") or None
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            audience=audience,
            options={"verify_aud": audience is not None},
        )
    except jwt.PyJWTError as exc:
        raise InvalidCredentialsError("invalid or expired staff token") from exc

    subject = claims.get("sub")
    return StaffPrincipal(subject=str(subject) if subject is not None else None, claims=claims)


def require_staff(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> StaffPrincipal:
    if credentials is None or not credentials.credentials:
        raise MissingCredentialsError("staff credentials are required")
    return verify_staff_token(credentials.credentials)
