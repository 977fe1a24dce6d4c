"""
Bearer token helpers (PyJWT)

Tokens are normally issued by the external user service; create_access_token
exists for tooling and tests that need one signed with the same secret.
"""

import time
from typing import Any, Dict, Optional
import jwt
from civicvote.core.config import settings

def create_access_token(user_id: str, role: str = "member", verified: bool = False,
                        ttl_minutes: int = 480, extra: Optional[Dict[str, Any]] = None) -> str:
    now = int(time.time())
    payload = {
        "sub": str(user_id),
        "role": role,
        "verified": bool(verified),
        "iat": now,
        "exp": now + ttl_minutes * 60,
    }
    for k, v in (extra or {}).items():
        if k not in {"sub", "iat", "exp"}:
            payload[k] = v
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

def decode_token(token: str) -> Dict[str, Any]:
    """Raises jwt.InvalidTokenError on a bad signature, expiry or malformed token"""
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
