from __future__ import annotations
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from banfoo.schemas.auth import AdminPublic
from banfoo.security import decode_token

security = HTTPBearer(auto_error=False)

def _claims(credentials: HTTPAuthorizationCredentials | None, token_type: str) -> dict:
    if credentials is None:
        raise HTTPException(status_code=401, detail=f"Missing {token_type} token")
    try:
        data = decode_token(credentials.credentials)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if data.get("type") != token_type:
        raise HTTPException(status_code=401, detail="Wrong token type")
    if data.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return data

async def require_admin(credentials: HTTPAuthorizationCredentials | None = Depends(security)) -> AdminPublic:
    data = _claims(credentials, "access")
    return AdminPublic(sub=str(data.get("sub")), role="admin")

async def refresh_claims(credentials: HTTPAuthorizationCredentials | None = Depends(security)) -> dict:
    return _claims(credentials, "refresh")
