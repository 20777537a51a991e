import os
import time
from typing import Dict, Optional

import jwt


def _secret() -> str:
    secret = os.getenv("JWT_SECRET")
    if not secret:
        raise RuntimeError("JWT_SECRET is not configured")
    return secret


def _algorithm() -> str:
    return os.getenv("JWT_ALGORITHM", "HS256")


def _ttl_seconds() -> int:
    return int(os.getenv("JWT_EXP_DELTA_SECONDS", "3600"))


def token_response(token: str):
    return {
        "access_token": token,
        "token_type": "bearer"
    }


def sign_jwt(user_email: str) -> Dict[str, str]:
    """Generate a JWT token for a given user email."""
    payload = {
        "user_id": user_email,
        "expires": time.time() + _ttl_seconds()
    }
    token = jwt.encode(payload, _secret(), algorithm=_algorithm())
    return token_response(token)


def decode_jwt(token: str) -> Optional[dict]:
    """Decode a JWT token and return the payload if valid, else None."""
    try:
        decoded_token = jwt.decode(token, _secret(), algorithms=[_algorithm()])
    except jwt.InvalidTokenError:
        return None
    if decoded_token.get("expires", 0) >= time.time():
        return decoded_token
    return None
