"""
Caller identity for the API.

Tokens are issued by the auth service; here we only verify the signature and
read the ``id``, ``email`` and ``roles`` claims.
"""
import hmac
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import jwt
from fastapi import Depends, Header, Request

from orderdesk.core import config
from orderdesk.core.errors import AuthenticationRequired, StaffOnly

log = logging.getLogger(__name__)


@dataclass
class CurrentUser:
    id: str
    email: Optional[str] = None
    roles: List[str] = field(default_factory=list)

    @property
    def is_staff(self) -> bool:
        return config.STAFF_ROLE in self.roles


def decode_token(token: str) -> CurrentUser:
    """
    Raises:
        AuthenticationRequired: If the token is expired, forged or lacks an id.
    """
    try:
        claims = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        log.info(f"Rejected bearer token: {e}")
        raise AuthenticationRequired("Unauthorized")

    user_id = claims.get("id") or claims.get("sub")
    if not user_id:
        raise AuthenticationRequired("Unauthorized")
    roles = claims.get("roles") or []
    return CurrentUser(id=str(user_id), email=claims.get("email"), roles=[str(r) for r in roles])


def _bearer(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip() or None
    return None


async def get_optional_user(authorization: Optional[str] = Header(None)) -> Optional[CurrentUser]:
    """Guest checkout: no header means anonymous, but a bad token is still rejected."""
    if not authorization:
        return None
    token = _bearer(authorization)
    if token is None:
        raise AuthenticationRequired("Unauthorized")
    return decode_token(token)


async def get_current_user(user: Optional[CurrentUser] = Depends(get_optional_user)) -> CurrentUser:
    if user is None:
        raise AuthenticationRequired("Unauthorized")
    return user


async def require_staff(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_staff:
        raise StaffOnly("Forbidden")
    return user


async def require_service_key(x_service_key: Optional[str] = Header(None)):
    """
    Guards the login hooks: only the login service, which holds
    LOGIN_HOOK_SECRET, may report attempts. An unset secret refuses everyone.
    """
    expected = config.LOGIN_HOOK_SECRET
    if not expected or not x_service_key or not hmac.compare_digest(x_service_key, expected):
        raise AuthenticationRequired("Unauthorized")


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop when behind a proxy, otherwise the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"
