"""
Events service routes: create, read, update, delete events, and register.
Handles event lifecycle management and participation.

Every route requires a valid token. The identity is resolved once in
`before_request` and kept on `flask.g` for the handlers.
"""

import logging
from typing import Tuple, Dict, Any, Optional

from flask import Blueprint, request, jsonify, Response, g

from backend.auth_service.utils import verify_token_from_request
from backend.common.app_context import get_repository, current_time, to_json
from backend.common.errors import error_response
from backend.events_service import service

events_bp = Blueprint("events", __name__)


# --- AUTHENTICATION & REQUEST LOGGING ---
@events_bp.before_request
def authenticate() -> Optional[Tuple[Response, int]]:
    """
    Attach the caller's identity (g.user_id, g.user_email) or reject the request.
    """
    logging.info(f"[Events] Incoming {request.method} {request.path}")

    # CORS preflight carries no Authorization header
    if request.method == "OPTIONS":
        return None

    user_id, email, err, code = verify_token_from_request()
    if err:
        return err, code

    g.user_id = user_id
    g.user_email = email
    return None


@events_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Events] Response {response.status}")
    return response


def _body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


# --- EVENTS ---
@events_bp.route("/", methods=["GET"])
def list_events() -> Tuple[Response, int]:
    """
    Return all events ordered by date.

    Returns:
        200: { "success": true, "events": [...] }
        500: Database error.
    """
    events, failure = service.list_events(get_repository())
    if failure:
        return error_response(failure)
    return jsonify({"success": True, "events": to_json(events)}), 200


@events_bp.route("/my", methods=["GET"])
def list_my_events() -> Tuple[Response, int]:
    """
    Return the events the caller owns, ordered by date.
    """
    events, failure = service.list_user_events(get_repository(), g.user_id)
    if failure:
        return error_response(failure)
    return jsonify({"success": True, "events": to_json(events)}), 200


@events_bp.route("/<int:event_id>", methods=["GET"])
def get_event(event_id: int) -> Tuple[Response, int]:
    """
    Get a single event by ID.

    Returns:
        200: Event object.
        404: Event not found.
    """
    event, failure = service.get_event(get_repository(), event_id)
    if failure:
        return error_response(failure)
    return jsonify({"success": True, "event": to_json(event)}), 200


@events_bp.route("/", methods=["POST"])
def create_event() -> Tuple[Response, int]:
    """
    Create an event owned by the caller.

    Expects JSON with title, date (ISO-8601) and optional description,
    address, image.

    Returns:
        201: { "event": {..., "owner": {"id", "email"}} }
        400: Validation error (with an "errors" list).
        409: Same title at the same date and time already exists for this user.
        500: Server error.
    """
    event, failure = service.create_event(
        get_repository(), g.user_id, g.user_email, _body(), current_time())
    if failure:
        return error_response(failure)

    return jsonify({
        "success": True,
        "message": "Event created successfully",
        "event": to_json(event),
    }), 201


@events_bp.route("/<int:event_id>", methods=["PUT"])
def update_event(event_id: int) -> Tuple[Response, int]:
    """
    Update an event. Only fields present in the body are changed.

    Permission:
    - The owner of the event

    Returns:
        200: Updated event.
        400: Validation error.
        403: Caller is not the owner.
        404: Event not found.
    """
    event, failure = service.update_event(
        get_repository(), event_id, g.user_id, g.user_email, _body(), current_time())
    if failure:
        return error_response(failure)

    return jsonify({
        "success": True,
        "message": "Event updated successfully",
        "event": to_json(event),
    }), 200


@events_bp.route("/<int:event_id>", methods=["DELETE"])
def delete_event(event_id: int) -> Tuple[Response, int]:
    """
    Delete an event if the caller owns it. Registrations are removed with it.
    """
    _, failure = service.delete_event(get_repository(), event_id, g.user_id)
    if failure:
        return error_response(failure)

    return jsonify({"success": True, "message": "Event deleted successfully"}), 200


# --- REGISTRATIONS ---
@events_bp.route("/<int:event_id>/register", methods=["POST"])
def register(event_id: int) -> Tuple[Response, int]:
    """
    Register the caller for an event.

    Returns:
        201: { "registration": {...} }
        400: Own event, or the event date has passed.
        404: Event not found.
        409: Already registered.
    """
    registration, failure = service.register_for_event(
        get_repository(), event_id, g.user_id, current_time())
    if failure:
        return error_response(failure)

    return jsonify({
        "success": True,
        "message": "Successfully registered for event",
        "registration": to_json(registration),
    }), 201


@events_bp.route("/<int:event_id>/register", methods=["DELETE"])
def unregister(event_id: int) -> Tuple[Response, int]:
    """
    Remove the caller's registration for an event.
    """
    _, failure = service.unregister_from_event(get_repository(), event_id, g.user_id)
    if failure:
        return error_response(failure)

    return jsonify({"success": True, "message": "Successfully unregistered from event"}), 200


@events_bp.route("/<int:event_id>/registrations", methods=["GET"])
def get_registrations(event_id: int) -> Tuple[Response, int]:
    """
    List who registered for an event. Restricted to the event owner.
    """
    result, failure = service.get_event_registrations(get_repository(), event_id, g.user_id)
    if failure:
        return error_response(failure)

    return jsonify({"success": True, **to_json(result)}), 200


@events_bp.route("/registrations", methods=["GET"])
def get_my_registrations() -> Tuple[Response, int]:
    """
    List the events the caller is registered for, ordered by event date.
    """
    registrations, failure = service.get_user_registrations(get_repository(), g.user_id)
    if failure:
        return error_response(failure)

    return jsonify({
        "success": True,
        "message": "Your registered events",
        "registrations": to_json(registrations),
    }), 200
