# File: app/routers/auth.py

from fastapi import APIRouter, Depends
from app.core.security import get_current_actor
from app.schemas.auth import Actor

router = APIRouter(prefix="/auth", tags=["auth"])

# Tokens are issued by the external auth service; this API only verifies them.
@router.get("/profile", response_model=Actor)
def profile(actor: Actor = Depends(get_current_actor)):
    return actor
