from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from ..auth import TOKEN_COOKIE, create_token, verify_password
from ..config import Settings, get_settings
from ..database import get_db
from ..logs import log_auth
from ..ratelimit import auth_rate_limit
from .. import crud, schemas

router = APIRouter(prefix="/api/auth", tags=["Auth"], dependencies=[Depends(auth_rate_limit)])


@router.post("/signup", response_model=schemas.MessageOut, summary="Create an account")
def signup(data: schemas.SignupIn, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    user = crud.sign_up(db, data.email, data.password, settings.bcrypt_rounds)
    log_auth("signup", user.id, user.email)
    return schemas.MessageOut(message="User created successfully")


@router.post("/login", response_model=schemas.LoginOut, summary="Log in and receive a token")
def login(data: schemas.LoginIn, response: Response, db: Session = Depends(get_db),
          settings: Settings = Depends(get_settings)):
    user = crud.get_user_by_email(db, data.email)
    if not user:
        log_auth("auth_failed", email=data.email)
        raise HTTPException(400, "Invalid email or password" if settings.login_generic_errors else "User not found")
    if not verify_password(data.password, user.password):
        log_auth("auth_failed", user.id, user.email)
        raise HTTPException(400, "Invalid email or password" if settings.login_generic_errors else "Invalid password")

    token = create_token(user.id, settings.jwt_secret, settings.token_ttl_days)
    response.set_cookie(
        TOKEN_COOKIE,
        token,
        max_age=settings.token_ttl_days * 24 * 60 * 60,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
    )
    log_auth("login", user.id, user.email)
    return schemas.LoginOut(message="Login successful", token=token, user_id=user.id, email=user.email)


@router.post("/logout", response_model=schemas.MessageOut, summary="Clear the token cookie")
def logout(response: Response, settings: Settings = Depends(get_settings)):
    response.delete_cookie(TOKEN_COOKIE, path="/", httponly=True, samesite="lax", secure=settings.cookie_secure)
    log_auth("logout")
    return schemas.MessageOut(message="Logged out")
