"""
Account registration and password verification.

Passwords are stored as bcrypt hashes; plaintext never reaches the store.
"""

import logging

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrail.config import settings
from tasktrail.db.repositories import UserRepository
from tasktrail.engine.errors import EmailAlreadyRegistered, InvalidCredentials
from tasktrail.models import Role, User

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash password with bcrypt"""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=settings.bcrypt_rounds)).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Verify password against hash"""
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        # Malformed stored hash
        return False


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def register_user(
    session: AsyncSession,
    email: str,
    password: str,
    role: Role = Role.USER,
) -> User:
    """Create an account; raises EmailAlreadyRegistered on duplicates."""
    email = normalize_email(email)
    users = UserRepository(session)
    if await users.get_with_password_hash(email):
        raise EmailAlreadyRegistered(email)
    try:
        user = await users.create(email=email, password_hash=hash_password(password), role=role)
    except IntegrityError:
        # Lost a race with a concurrent registration.
        await session.rollback()
        raise EmailAlreadyRegistered(email)
    logger.info(f"Registered user {user.id} ({user.role.value})")
    return user


async def authenticate_user(session: AsyncSession, email: str, password: str) -> User:
    """Return the user for a valid email/password pair."""
    found = await UserRepository(session).get_with_password_hash(normalize_email(email))
    if found is None:
        raise InvalidCredentials()
    user, password_hash = found
    if not verify_password(password, password_hash):
        raise InvalidCredentials()
    return user
