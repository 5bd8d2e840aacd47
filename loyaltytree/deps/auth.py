from fastapi import Depends, Header
from sqlalchemy.orm import Session

from loyaltytree.config import Settings, get_settings
from loyaltytree.db import get_db
from loyaltytree.errors import AuthenticationFailed, PermissionDenied
from loyaltytree.services.auth_service import Identity, verify_token


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_identity(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Identity:
    token = _bearer_token(authorization)
    if not token:
        raise AuthenticationFailed("No token provided", code="not_authenticated")

    identity = verify_token(db, settings, token)
    if identity is None:
        raise AuthenticationFailed("Invalid token", code="invalid_token")
    return identity


def require_roles(*roles: str):
    allowed = set(roles)

    def _dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in allowed:
            raise PermissionDenied("Access denied")
        return identity

    return _dependency


def require_customer(identity: Identity = Depends(get_current_identity)) -> Identity:
    if not identity.is_customer:
        raise PermissionDenied("Only customers can access this endpoint")
    return identity


require_retailer = require_roles("retailer")
require_admin = require_roles("admin")
