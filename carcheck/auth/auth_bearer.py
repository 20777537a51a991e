from typing import Optional

from fastapi import HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from carcheck.auth.auth_handler import decode_jwt


class JWTBearer(HTTPBearer):
    """Bearer scheme that yields the verified JWT string (or None when optional and absent)."""

    def __init__(self, auto_error: bool = True):
        super().__init__(auto_error=auto_error)

    async def __call__(self, request: Request) -> Optional[str]:
        credentials: Optional[HTTPAuthorizationCredentials] = await super().__call__(request)
        if credentials is None:
            return None
        if credentials.scheme.lower() != "bearer":
            raise HTTPException(status_code=401, detail="Invalid authentication scheme.")
        if not decode_jwt(credentials.credentials):
            raise HTTPException(status_code=401, detail="Invalid or expired token.")
        return credentials.credentials
