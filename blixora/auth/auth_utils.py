# blixora/auth/auth_utils.py
from datetime import datetime, timedelta
from typing import Optional

from jose import jwt, JWTError
from fastapi import Header, HTTPException

from blixora import config


def _decode_jwt_token(token: str) -> dict:
    try:
        return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or Expired Token")


def create_access_token(user_id: str, expires_minutes: Optional[int] = None) -> str:
    """Issue a token for user_id. Real tokens come from the auth service; this is for dev and tests."""
    expire = datetime.utcnow() + timedelta(minutes=expires_minutes or config.JWT_EXPIRE_MINUTES)
    payload = {"sub": user_id, "exp": expire}
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def verify_token(authorization: str = Header(None)) -> dict:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized")

    token = authorization.split(" ", 1)[1]
    payload = _decode_jwt_token(token)
    if not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token: missing user_id")
    return payload
