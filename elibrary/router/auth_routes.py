# router/auth_routes.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from elibrary import config
from elibrary.auth import hashing, oauth2, token
from elibrary.database.connection import get_db
from elibrary.models.all_model import User as UserModel
from elibrary.schemas.all_schema import (
    LoginRequest,
    MessageResponse,
    SignupRequest,
    TokenWithUser,
    UserResponse,
)

logger = logging.getLogger("elibrary.auth")

router = APIRouter(
    prefix="/api/auth",
    tags=["Authentication"]
)


def _set_auth_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        key=config.COOKIE_NAME,
        value=access_token,
        httponly=True,
        samesite="lax",
        secure=config.COOKIE_SECURE,
        max_age=int(config.ACCESS_TOKEN_EXPIRE.total_seconds()),
    )


@router.post("/signup", response_model=TokenWithUser, status_code=status.HTTP_201_CREATED)
def signup(request: SignupRequest, response: Response, db: Session = Depends(get_db)):
    email = request.email.lower()
    if request.role == "admin" and not config.ALLOW_ADMIN_SIGNUP:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin signup is disabled")

    if db.query(UserModel).filter(UserModel.email == email).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    new_user = UserModel(
        name=request.name,
        email=email,
        hashed_password=hashing.Hash.bcrypt(request.password),
        role=request.role,
        is_blocked=False,
    )
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent signup with the same email
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    db.refresh(new_user)
    logger.info("New %s account %s (id=%s)", new_user.role, new_user.email, new_user.id)

    access_token = token.create_user_token(new_user)
    _set_auth_cookie(response, access_token)
    return {"token": access_token, "user": new_user}


@router.post("/login", response_model=TokenWithUser)
def login(request: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = db.query(UserModel).filter(UserModel.email == request.email.lower()).first()

    if not user or not hashing.Hash.verify(request.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid credentials",
        )
    if user.is_blocked:
        logger.info("Blocked user %s attempted to log in", user.id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is blocked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = token.create_user_token(user)
    _set_auth_cookie(response, access_token)
    return {"token": access_token, "user": user}


@router.get("/me", response_model=UserResponse)
def me(current_user: UserModel = Depends(oauth2.get_current_user)):
    return current_user


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response, current_user: UserModel = Depends(oauth2.get_current_user)):
    response.delete_cookie(config.COOKIE_NAME, httponly=True, samesite="lax", secure=config.COOKIE_SECURE)
    return {"message": "Logged out successfully"}
