"""
Request dependencies: the authenticated caller
"""

import logging
from dataclasses import dataclass
from typing import Optional
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from civicvote.core.exceptions import PermissionDeniedError
from civicvote.core.security import decode_token

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

@dataclass
class CurrentUser:
    id: str
    role: str = "member"
    verified: bool = False
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def ensure_self(self, user_id: Optional[str]):
        """Reject acting on behalf of someone else"""
        if user_id and user_id != self.id:
            raise PermissionDeniedError("You can only act on your own behalf")

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> CurrentUser:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        claims = decode_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        logger.info("Rejected token: %s", e)
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    if not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return CurrentUser(
        id=str(claims["sub"]),
        role=claims.get("role", "member"),
        verified=bool(claims.get("verified", False)),
        email=claims.get("email"),
    )

async def require_verified_user(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.verified:
        raise HTTPException(status_code=403, detail="Only verified members can do this")
    return user

async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
