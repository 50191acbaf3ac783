#hapa/api/v1/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from hapa.core.auth_deps import get_current_principal
from hapa.core.security import create_access_token
from hapa.db.session import get_db
from hapa.schemas.auth import LoginRequest, TokenResponse
from hapa.services.auth_service import authenticate

router = APIRouter(prefix="/auth")
logger = logging.getLogger(__name__)


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest, db: Session = Depends(get_db)):
    principal = authenticate(db, str(req.email), req.password)
    if not principal:
        logger.warning("[auth] failed login for %s", req.email)
        raise HTTPException(status_code=401, detail="Invalid credentials.")

    token = create_access_token(
        subject=principal.user_id,
        claims={
            "email": principal.email,
            "role": principal.role.value,
            "name": principal.display_name,
        },
    )
    return TokenResponse(access_token=token)


@router.get("/me")
def get_me(principal=Depends(get_current_principal)):
    return {
        "user_id": principal.user_id,
        "email": principal.email,
        "role": principal.role.value,
        "display_name": principal.display_name,
    }
