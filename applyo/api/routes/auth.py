"""Auth endpoints -- anonymous sign-in, session lookup and sign-out."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, Security
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from applyo import auth
from applyo.api.deps import get_db
from applyo.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/sign-in/anonymous")
def sign_in_anonymous(response: Response, db: Session = Depends(get_db)):
    """Create an anonymous user and set the session cookie."""
    user, auth_session = auth.sign_in_anonymous(db)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=auth_session.token,
        max_age=settings.session_ttl_days * 24 * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.environment == "production",
    )
    return {"token": auth_session.token, "user": auth.user_to_dict(user)}


@router.get("/get-session")
def get_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(auth.security),
    db: Session = Depends(get_db),
):
    """Current session and user, or null."""
    auth_session = auth.get_session(db, auth.token_from_request(request, credentials))
    if auth_session is None:
        return None
    return {
        "session": auth.session_to_dict(auth_session),
        "user": auth.user_to_dict(auth_session.user),
    }


@router.post("/sign-out")
def sign_out(
    request: Request,
    response: Response,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(auth.security),
    db: Session = Depends(get_db),
):
    auth.sign_out(db, auth.token_from_request(request, credentials))
    response.delete_cookie(settings.session_cookie_name)
    return {"success": True}
