from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any
import jwt
from passlib.context import CryptContext
from banfoo.config import settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

JWT_ALG = "HS256"
ADMIN_SUB = "admin"
TOKEN_TTL_MIN = {"access": settings.access_ttl_min, "refresh": settings.refresh_ttl_min}

# one shared organiser password; a pre-computed hash wins over the plain env value
ADMIN_PASSWORD_HASH = settings.admin_password_hash or pwd_context.hash(settings.admin_password)

def verify_admin_password(password: str) -> bool:
    return pwd_context.verify(password, ADMIN_PASSWORD_HASH)

def make_token(token_type: str, sub: str = ADMIN_SUB) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": sub,
        "role": "admin",
        "type": token_type,
        "iat": now.timestamp(),  # float keeps back-to-back tokens distinct
        "exp": int((now + timedelta(minutes=TOKEN_TTL_MIN[token_type])).timestamp()),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=JWT_ALG)

def token_pair(sub: str = ADMIN_SUB) -> dict[str, str]:
    return {"access": make_token("access", sub), "refresh": make_token("refresh", sub)}

def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALG])
