#hapa/core/auth_deps.py
from __future__ import annotations

from typing import Callable

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from hapa.core.security import decode_token
from hapa.models.enums import UserRole
from hapa.policies.rbac import Principal, can

bearer = HTTPBearer(auto_error=False)


def principal_from_token(token: str) -> Principal:
    """
    Guarantees:
    - JWT is valid
    - sub, email and role are present
    - role is a valid UserRole with back-office access (not plain `user`)

    Raises HTTPException 401/403 otherwise.
    """
    try:
        payload = decode_token(token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token.")

    user_id = payload.get("sub")
    email = payload.get("email")
    role = payload.get("role")

    if not user_id or not role:
        raise HTTPException(status_code=401, detail="Token missing required claims.")

    try:
        role_enum = UserRole(role)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid role in token.")

    if role_enum == UserRole.USER:
        raise HTTPException(status_code=403, detail="Back-office access not permitted.")

    return Principal(
        user_id=str(user_id),
        email=str(email or ""),
        role=role_enum,
        display_name=str(payload.get("name") or email or "Unknown"),
    )


def get_current_principal(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> Principal:
    """Canonical authentication dependency for staff endpoints."""
    if creds is None:
        raise HTTPException(status_code=401, detail="Unauthorized")

    principal = principal_from_token(creds.credentials)

    # Make principal available to downstream middleware / handlers
    request.state.principal = principal

    return principal


def require_action(action: str) -> Callable[..., Principal]:
    """Dependency factory: 403 unless the principal's role allows `action`."""

    def _dep(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not can(principal, action):
            raise HTTPException(
                status_code=403,
                detail=f"Role {principal.role.value} not permitted for this action.",
            )
        return principal

    return _dep
