"""TaskTrail authentication module."""

from tasktrail.auth.credentials import (
    authenticate_user,
    hash_password,
    register_user,
    verify_password,
)
from tasktrail.auth.token import create_access_token, decode_access_token

__all__ = [
    "authenticate_user",
    "create_access_token",
    "decode_access_token",
    "hash_password",
    "register_user",
    "verify_password",
]
