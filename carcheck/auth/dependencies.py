from typing import Optional

from fastapi import Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carcheck.auth.auth_bearer import JWTBearer
from carcheck.auth.auth_handler import decode_jwt
from carcheck.core.db import get_db
from carcheck.models.user import User


async def _user_from_token(token: str, db: AsyncSession) -> User:
    payload = decode_jwt(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user = (await db.execute(select(User).where(User.email == payload.get("user_id")))).scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=401, detail="User no longer exists")
    return user


async def get_current_user(
    token: str = Depends(JWTBearer()),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Authenticated user for the request; 401 when missing or invalid."""
    return await _user_from_token(token, db)


async def get_optional_user(
    token: Optional[str] = Depends(JWTBearer(auto_error=False)),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Authenticated user if a bearer token was sent, else None (public share links)."""
    if token is None:
        return None
    return await _user_from_token(token, db)
