"""Access token issue and verification (JWT)."""

from datetime import timedelta

from jose import JWTError, jwt

from tasktrail.config import settings
from tasktrail.engine.errors import InvalidCredentials
from tasktrail.models import Actor, Role, User
from tasktrail.utils.time import utc_now


def create_access_token(user: User, expires_delta: timedelta | None = None) -> str:
    """Issue a signed token carrying the user's id and role."""
    now = utc_now()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_token_ttl_minutes)
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role.value,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Actor:
    """Verify a token and return the actor it names."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise InvalidCredentials(f"Invalid token: {exc}") from exc

    try:
        return Actor(id=int(payload["sub"]), role=Role(payload["role"]))
    except (KeyError, ValueError) as exc:
        raise InvalidCredentials("Token is missing identity claims") from exc
