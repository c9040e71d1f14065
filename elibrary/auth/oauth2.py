# auth/oauth2.py
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from elibrary import config
from elibrary.auth import token
from elibrary.database.connection import get_db
from elibrary.models.all_model import User as UserModel

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> UserModel:
    """Resolve the caller from the bearer header or the auth cookie.

    The user row is re-read on every request so blocking takes effect
    immediately, even for tokens that are still within their lifetime.
    """
    raw = bearer or request.cookies.get(config.COOKIE_NAME)
    if not raw:
        raise _unauthorized()

    token_data = token.verify_token(raw, _unauthorized())
    user = db.get(UserModel, token_data.user_id)
    if user is None or user.is_blocked:
        raise _unauthorized()
    return user


def require_roles(*roles: str):
    """Dependency factory rejecting callers whose role is not in ``roles``."""

    def checker(current_user: UserModel = Depends(get_current_user)) -> UserModel:
        if current_user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return current_user

    return checker
