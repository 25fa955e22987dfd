# portal/routers/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from portal.db.session import get_db
from portal.exceptions import InvalidInputError, UnauthorizedError
from portal.models.user import User
from portal.schemas import user_out
from portal.utils.authz import require_admin
from portal.utils.security import verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login")
def login(request: Request, payload: dict = Body(...), db: Session = Depends(get_db)):
    """
    Body: {"email": "...", "password": "..."}
    Sets the signed session cookie on success.
    """
    email_norm = str((payload or {}).get("email") or "").strip().lower()
    password = str((payload or {}).get("password") or "")
    if not email_norm or not password:
        raise InvalidInputError("Email and password are required.")

    user = db.execute(select(User).where(User.email == email_norm)).scalar_one_or_none()
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        logger.info("Failed login for %s", email_norm)
        raise UnauthorizedError("Invalid credentials")

    request.session.clear()
    request.session["user_id"] = user.id

    return {"success": True, "user": user_out(user)}


@router.post("/logout")
def logout(request: Request):
    request.session.clear()
    return {"success": True}


@router.get("/me")
def me(user: User = Depends(require_admin)):
    return {"user": user_out(user)}
