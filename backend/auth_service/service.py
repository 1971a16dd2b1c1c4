"""
Identity and credential operations: signup, login, user lookups.

Passwords are hashed with Argon2 and the hash never leaves this module.
Every function returns `(value, failure)`.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from backend.auth_service.utils import create_token
from backend.common.errors import ErrorKind, Failure, internal_failure
from backend.database.repository import StorageError, UniqueViolationError

ph = PasswordHasher()

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_MIN_LENGTH = 6


def _public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in user.items() if k != "password_hash"}


def signup(repo, email: Any, password: Any, name: Any = None) -> Tuple[Optional[Dict[str, Any]], Optional[Failure]]:
    """
    Create a user account.

    Args:
        repo: Storage repository.
        email (str): Unique address, compared case-insensitively.
        password (str): At least PASSWORD_MIN_LENGTH characters.
        name (str, optional): Display name, defaults to ''.

    Returns:
        tuple: ({"user": ..., "token": ...}, None) or (None, Failure)
    """
    email = email.strip().lower() if isinstance(email, str) else ""
    if not email or not isinstance(password, str) or not password:
        return None, Failure(ErrorKind.VALIDATION_FAILED, "Email and password are required")

    if not EMAIL_PATTERN.match(email):
        return None, Failure(ErrorKind.VALIDATION_FAILED, "Please provide a valid email address")

    if len(password) < PASSWORD_MIN_LENGTH:
        return None, Failure(
            ErrorKind.VALIDATION_FAILED,
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters long",
        )

    name = name.strip() if isinstance(name, str) else ""

    try:
        if repo.find_user_by_email(email):
            return None, Failure(ErrorKind.CONFLICT, "User with this email already exists")

        pw_hash = ph.hash(password)
        user = repo.create_user(email, pw_hash, name)
    except UniqueViolationError:
        # Lost a race with a concurrent signup for the same email
        return None, Failure(ErrorKind.CONFLICT, "User with this email already exists")
    except StorageError:
        logging.exception(f"[Auth] Signup failed for {email}")
        return None, internal_failure()

    logging.info(f"[Auth] Created user {user['user_id']} ({email})")
    return {"user": user, "token": create_token(user["user_id"], email)}, None


def authenticate(repo, email: Any, password: Any) -> Tuple[Optional[Dict[str, Any]], Optional[Failure]]:
    """
    Check credentials and issue a token.

    Unknown email and wrong password produce the same failure.

    Returns:
        tuple: ({"user": ..., "token": ...}, None) or (None, Failure)
    """
    email = email.strip().lower() if isinstance(email, str) else ""
    if not email or not isinstance(password, str) or not password:
        return None, Failure(ErrorKind.VALIDATION_FAILED, "Email and password are required")

    invalid = Failure(ErrorKind.CREDENTIAL_INVALID, "Invalid email or password")

    try:
        user = repo.find_user_by_email(email)
    except StorageError:
        logging.exception("[Auth] Login lookup failed")
        return None, internal_failure()

    if not user:
        return None, invalid

    try:
        ph.verify(user["password_hash"], password)
    except (VerificationError, InvalidHashError):
        return None, invalid

    user = _public_user(user)
    return {"user": user, "token": create_token(user["user_id"], user["email"])}, None


def get_user(repo, user_id: int) -> Tuple[Optional[Dict[str, Any]], Optional[Failure]]:
    try:
        user = repo.find_user_by_id(user_id)
    except StorageError:
        logging.exception(f"[Auth] Could not load user {user_id}")
        return None, internal_failure()

    if not user:
        return None, Failure(ErrorKind.NOT_FOUND, "User not found")
    return user, None


def list_users(repo) -> Tuple[Optional[List[Dict[str, Any]]], Optional[Failure]]:
    try:
        return repo.list_users(), None
    except StorageError:
        logging.exception("[Auth] Could not list users")
        return None, internal_failure()
