from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
import structlog
from banfoo.auth_deps import require_admin, refresh_claims
from banfoo.schemas.auth import LoginRequest, TokenPair, AdminPublic
from banfoo.security import verify_admin_password, token_pair

router = APIRouter(prefix="/auth", tags=["auth"])
log = structlog.get_logger()

@router.post("/login", response_model=TokenPair)
async def login(payload: LoginRequest):
    """Camp leaders share one password; there are no player accounts."""
    if not verify_admin_password(payload.password):
        log.warning("admin_login_failed")
        raise HTTPException(status_code=401, detail="Invalid credentials")
    log.info("admin_login")
    return TokenPair(**token_pair())

@router.post("/refresh", response_model=TokenPair)
async def refresh(claims: dict = Depends(refresh_claims)):
    return TokenPair(**token_pair(str(claims.get("sub"))))

@router.get("/me", response_model=AdminPublic)
async def me(admin: AdminPublic = Depends(require_admin)):
    return admin
