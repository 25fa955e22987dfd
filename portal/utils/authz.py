# portal/utils/authz.py
from __future__ import annotations

import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from portal.db.session import get_db
from portal.exceptions import UnauthorizedError
from portal.models.user import User

logger = logging.getLogger(__name__)


def require_admin(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Admin gate for /api routes.

    - No session: 401
    - Session pointing at a missing or deactivated user: clear it, 401
    - Otherwise: return the User row
    """
    uid = request.session.get("user_id")
    if not uid:
        raise UnauthorizedError()

    user = db.get(User, uid)
    if not user or not user.is_active:
        logger.info("Rejecting session for inactive/missing user id=%s", uid)
        request.session.clear()
        raise UnauthorizedError()

    request.state.user = user
    return user
