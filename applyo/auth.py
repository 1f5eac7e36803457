"""
Authentication Module

Anonymous sign-in with database-backed session tokens.
Tokens are accepted as a Bearer header or the session cookie.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from applyo.api.deps import get_db
from applyo.config import settings
from applyo.database import AuthSession, User

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)


def new_token() -> str:
    return secrets.token_urlsafe(32)


def sign_in_anonymous(session: Session) -> Tuple[User, AuthSession]:
    """
    Create an anonymous user and a session for it.

    Returns:
        (user, auth_session)
    """
    user = User(is_anonymous=True)
    session.add(user)
    session.flush()

    user.name = "Anonymous"
    user.email = f"temp-{user.id}@anonymous.local"

    auth_session = AuthSession(
        token=new_token(),
        user_id=user.id,
        expires_at=datetime.utcnow() + timedelta(days=settings.session_ttl_days),
    )
    session.add(auth_session)
    session.flush()

    logger.info(f"Anonymous sign-in for user {user.id}")
    return user, auth_session


def get_session(session: Session, token: Optional[str]) -> Optional[AuthSession]:
    """
    Look up a live session by token.

    Expired sessions are deleted and treated as missing.
    """
    if not token:
        return None

    auth_session = session.query(AuthSession).filter(AuthSession.token == token).first()
    if auth_session is None:
        return None

    if auth_session.expires_at <= datetime.utcnow():
        logger.info(f"Session for user {auth_session.user_id} expired")
        session.delete(auth_session)
        session.flush()
        return None

    return auth_session


def sign_out(session: Session, token: Optional[str]) -> bool:
    """Delete the session for a token; False when there was none."""
    if not token:
        return False
    deleted = session.query(AuthSession).filter(AuthSession.token == token).delete()
    session.flush()
    return deleted > 0


def user_to_dict(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "isAnonymous": user.is_anonymous,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }


def session_to_dict(auth_session: AuthSession) -> Dict[str, Any]:
    return {
        "id": auth_session.id,
        "token": auth_session.token,
        "userId": auth_session.user_id,
        "expiresAt": auth_session.expires_at.isoformat(),
    }


def token_from_request(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = None,
) -> Optional[str]:
    """Bearer token first, then the session cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name)


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the signed-in user.

    Raises:
        HTTPException: 401 if the token is missing, unknown or expired
    """
    token = token_from_request(request, credentials)
    auth_session = get_session(db, token)
    if auth_session is None:
        # keep the deletion of an expired session
        db.commit()
        raise HTTPException(status_code=401, detail="Unauthorized")
    return auth_session.user
