"""
User account route handlers.

Provides routes for:
- User signup
- User login
- Listing users
- Profile retrieval (/profile)

JWT logic lives in `auth_service.utils`, credential rules in
`auth_service.service`.
"""

import logging
from typing import Tuple, Dict, Any

from flask import Blueprint, request, jsonify, Response

from backend.auth_service import service
from backend.auth_service.utils import verify_token_from_request
from backend.common.app_context import get_repository, to_json
from backend.common.errors import error_response

auth_bp = Blueprint("auth", __name__)


# --- REQUEST LOGGING ---
@auth_bp.before_request
def before_request() -> None:
    """
    Log method and path of every request to the users blueprint.
    """
    logging.info(f"[Auth] Incoming {request.method} {request.path}")


@auth_bp.after_request
def after_request(response: Response) -> Response:
    """
    Log the response status code for every request.

    Args:
        response (Response): The Flask response object.

    Returns:
        Response: The passed-through response object.
    """
    logging.info(f"[Auth] Response {response.status}")
    return response


# --- SIGNUP ---
@auth_bp.route("/signup", methods=["POST"])
def signup() -> Tuple[Response, int]:
    """
    Register a new user.

    Expects a JSON body with:
    - email (str): Unique email address.
    - password (str): Minimum 6 characters.
    - name (str, optional)

    Returns:
        201: JSON with the user (no password) and a JWT token.
        400: Missing or invalid fields.
        409: Email already exists.
        500: Server-side error.
    """
    data: Dict[str, Any] = request.get_json(silent=True) or {}

    result, failure = service.signup(
        get_repository(), data.get("email"), data.get("password"), data.get("name"))
    if failure:
        return error_response(failure)

    return jsonify({
        "success": True,
        "message": "User created successfully",
        "user": to_json(result["user"]),
        "token": result["token"],
    }), 201


# --- LOGIN ---
@auth_bp.route("/login", methods=["POST"])
def login() -> Tuple[Response, int]:
    """
    Authenticate a user and return a JWT.

    Expects a JSON body with:
    - email (str)
    - password (str)

    Returns:
        200: JSON with the user and a JWT token.
        400: Missing credentials.
        401: Invalid credentials (wrong password or unknown email).
        500: Database error.
    """
    data: Dict[str, Any] = request.get_json(silent=True) or {}

    result, failure = service.authenticate(get_repository(), data.get("email"), data.get("password"))
    if failure:
        return error_response(failure)

    return jsonify({
        "success": True,
        "message": "Login successful",
        "user": to_json(result["user"]),
        "token": result["token"],
    }), 200


# --- LIST USERS ---
@auth_bp.route("", methods=["GET"])
@auth_bp.route("/", methods=["GET"])
def list_users() -> Tuple[Response, int]:
    """
    List all users without their password hashes.

    Requires Authorization header: Bearer <token>
    """
    _, _, err, code = verify_token_from_request()
    if err:
        return err, code

    users, failure = service.list_users(get_repository())
    if failure:
        return error_response(failure)

    return jsonify({"success": True, "users": to_json(users)}), 200


# --- GET CURRENT USER ---
@auth_bp.route("/profile", methods=["GET"])
def get_current_user() -> Tuple[Response, int]:
    """
    Retrieve the current user's profile.

    Requires Authorization header: Bearer <token>

    Returns:
        200: User profile object.
        401: Authentication failure.
        404: User no longer exists.
        500: Database error.
    """
    user_id, _, err, code = verify_token_from_request()
    if err:
        return err, code

    user, failure = service.get_user(get_repository(), user_id)
    if failure:
        return error_response(failure)

    return jsonify({"success": True, "user": to_json(user)}), 200
