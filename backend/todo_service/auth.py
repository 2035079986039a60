from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import HTTPException, Request, Security
from fastapi.security import APIKeyCookie, HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from .logs import log_auth

ALGORITHM = "HS256"
TOKEN_COOKIE = "token"

bearer = HTTPBearer(auto_error=False)
token_cookie = APIKeyCookie(name=TOKEN_COOKIE, auto_error=False)


class InvalidTokenError(Exception):
    pass


def _password_bytes(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return password.encode("utf-8")[:72]


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(_password_bytes(password), hashed.encode("utf-8"))


def create_token(user_id: str, secret: str, ttl_days: int = 7) -> str:
    expires = datetime.now(timezone.utc) + timedelta(days=ttl_days)
    return jwt.encode({"id": user_id, "exp": int(expires.timestamp())}, secret, algorithm=ALGORITHM)


def verify_token(token: str, secret: str) -> str:
    """
    Verify signature and expiry of a token issued by create_token.
    Returns the user id embedded in the payload.
    Raises InvalidTokenError for anything else.
    """
    try:
        claims = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e

    user_id = claims.get("id")
    if not isinstance(user_id, str):
        raise InvalidTokenError("Token payload has no user id")
    return user_id


def extract_token(credentials: Optional[HTTPAuthorizationCredentials], cookie: Optional[str]) -> Optional[str]:
    """Authorization: Bearer header first, then the token cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return cookie or None


async def get_current_user_id(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer),
        cookie: Optional[str] = Security(token_cookie),
) -> str:
    """
    FastAPI dependency for routes that require a signed-in caller
    Usage: user_id = Depends(get_current_user_id)
    """
    token = extract_token(credentials, cookie)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")

    try:
        user_id = verify_token(token, request.app.state.settings.jwt_secret)
    except InvalidTokenError:
        log_auth("auth_failed")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    request.state.user_id = user_id
    return user_id


async def get_optional_user_id(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer),
        cookie: Optional[str] = Security(token_cookie),
) -> Optional[str]:
    """Same as get_current_user_id but yields None instead of failing."""
    token = extract_token(credentials, cookie)
    if not token:
        return None

    try:
        user_id = verify_token(token, request.app.state.settings.jwt_secret)
    except InvalidTokenError:
        return None

    request.state.user_id = user_id
    return user_id
