# File: app/core/security.py
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import jwt
from app.core.config import settings
from app.schemas.auth import Actor, ANONYMOUS
from app.services.policy import Role

ALGO = "HS256"
bearer = HTTPBearer(auto_error=False)

def _decode_token(creds: Optional[HTTPAuthorizationCredentials]) -> dict:
    if not creds:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        return jwt.decode(creds.credentials, settings.jwt_secret, algorithms=[ALGO])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

def _actor_from_payload(payload: dict) -> Actor:
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    try:
        role = Role(payload.get("role") or Role.user.value)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token role")
    return Actor(id=str(sub), name=payload.get("name") or payload.get("username"), role=role)

def get_current_actor(creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> Actor:
    return _actor_from_payload(_decode_token(creds))

def get_optional_actor(creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> Actor:
    """Anonymous reporters are allowed; a token that is present must still be valid."""
    if not creds:
        return ANONYMOUS
    return _actor_from_payload(_decode_token(creds))
