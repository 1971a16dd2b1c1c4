"""
Shared authentication helpers.
Provides token creation and verification of the Authorization header.
"""

import os
import jwt
from datetime import datetime, timedelta, timezone
from typing import Tuple, Optional, Dict, Any
from flask import jsonify, request, Response
from dotenv import load_dotenv

# Load .env only once here
load_dotenv()

# Load secrets & configs
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    raise RuntimeError("JWT_SECRET is missing. Set it in .env")

JWT_ALGORITHM = "HS256"
TOKEN_EXPIRATION_MINUTES = int(os.getenv("TOKEN_EXPIRATION_MINUTES", 60))


# --- JWT CREATION ---
def create_token(user_id: int, email: str) -> str:
    """
    Generates a new JWT for a given user.

    Args:
        user_id (int): The unique ID of the user.
        email (str): The user's email address.

    Returns:
        str: Encoded JWT string.
    """
    now = datetime.now(timezone.utc)

    payload = {
        # registered claim "sub" must be a string
        "sub": str(user_id),
        "email": email,
        "exp": now + timedelta(minutes=TOKEN_EXPIRATION_MINUTES),
        "iat": now
    }

    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT.

    Raises:
        jwt.ExpiredSignatureError: The token is past its `exp`.
        jwt.InvalidTokenError: Any other signature or format problem.
    """
    return jwt.decode(
        token,
        JWT_SECRET,
        algorithms=[JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )


# --- JWT VALIDATION ---
def verify_token_from_request() -> Tuple[Optional[int], Optional[str], Optional[Response], Optional[int]]:
    """
    Verify the JWT in the Authorization header.

    Returns:
        tuple: (user_id, email, error_response, status_code)
               If successful, error_response and status_code are None.
               If failed, user_id and email are None.
    """

    auth = request.headers.get("Authorization", "")

    if not auth.startswith("Bearer "):
        return None, None, jsonify({"success": False, "error": "missing token", "message": "Access token required"}), 401

    token = auth.split(" ", 1)[1]

    try:
        payload = decode_token(token)
        user_id = int(payload["sub"])
    except jwt.ExpiredSignatureError:
        return None, None, jsonify({"success": False, "error": "token expired", "message": "Invalid or expired token"}), 401
    except (jwt.InvalidTokenError, ValueError):
        return None, None, jsonify({"success": False, "error": "invalid token", "message": "Invalid or expired token"}), 401

    return user_id, payload.get("email"), None, None


def verify_token(token: str) -> Optional[int]:
    """
    Validate a JWT outside of a request.

    Args:
        token (str): JWT string.

    Returns:
        int: user_id if valid, None otherwise.
    """
    try:
        return int(decode_token(token)["sub"])
    except (jwt.InvalidTokenError, ValueError):
        return None
