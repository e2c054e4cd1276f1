from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from fastapi import Depends
from dataclasses import dataclass
from typing import Optional
import logging

from ..auth.jwt_utils import verify_token
from .errors import MissingToken

logger = logging.getLogger(__name__)

# auto_error=False so a missing header reaches us and becomes a 401
_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class TokenUser:
    id: int
    email: Optional[str]
    name: Optional[str]


def _user_from_credentials(cred: HTTPAuthorizationCredentials) -> TokenUser:
    payload = verify_token(cred.credentials)
    return TokenUser(id=int(payload["id"]), email=payload.get("email"), name=payload.get("name"))


def get_current_user(
    cred: Optional[HTTPAuthorizationCredentials] = Depends(_scheme)
) -> TokenUser:
    """Require a bearer token: none -> 401, unverifiable -> 403"""
    if cred is None or not cred.credentials:
        raise MissingToken()
    return _user_from_credentials(cred)


def get_optional_user(
    cred: Optional[HTTPAuthorizationCredentials] = Depends(_scheme)
) -> Optional[TokenUser]:
    if cred is None or not cred.credentials:
        return None
    return _user_from_credentials(cred)
