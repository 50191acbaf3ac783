# hapa/core/security.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from jose import JWTError, jwt
from passlib.context import CryptContext

from hapa.core.config import get_settings

STAFF_TOKEN_TYPE = "staff"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(raw: str) -> str:
    return pwd_context.hash(raw)


def check_password(raw: str, hashed: str) -> Tuple[bool, Optional[str]]:
    """(matches, replacement hash). The replacement is set when the stored hash uses outdated parameters."""
    if not hashed:
        return False, None
    return pwd_context.verify_and_update(raw, hashed)


def create_access_token(subject: str, claims: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    ttl = timedelta(minutes=expires_minutes or settings.jwt_access_token_minutes)

    payload = dict(claims)
    payload.update(
        sub=subject,
        typ=STAFF_TOKEN_TYPE,
        iat=int(now.timestamp()),
        exp=int((now + ttl).timestamp()),
    )
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Dict[str, Any]:
    """Raises JWTError for a bad signature, an expired token or a non-staff token."""
    settings = get_settings()
    payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    if payload.get("typ") != STAFF_TOKEN_TYPE:
        raise JWTError("not a staff token")
    return payload
