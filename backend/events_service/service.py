"""
Event and registration business rules.

Every operation takes the storage repository and, where time matters,
the current time as explicit arguments, and returns `(value, failure)`.
Ownership checks always come after the existence check, so a missing
event is reported as NOT_FOUND whoever asks.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from backend.common.errors import ErrorKind, Failure, internal_failure
from backend.database.repository import StorageError, UniqueViolationError, ForeignKeyViolationError
from backend.events_service.validation import validate_event_data, validate_event_update

Result = Tuple[Optional[Any], Optional[Failure]]

EVENT_NOT_FOUND = Failure(ErrorKind.NOT_FOUND, "Event not found")


def _owner(user_id: int, email: Optional[str]) -> Dict[str, Any]:
    return {"id": user_id, "email": email}


def _same_instant(a: Any, b: datetime) -> bool:
    return isinstance(a, datetime) and a == b


# --- EVENT CRUD ---

def create_event(repo, user_id: int, email: Optional[str], data: Dict[str, Any], now: datetime) -> Result:
    """
    Create an event owned by the caller.

    Returns:
        tuple: (event dict with an "owner" snapshot, None) or (None, Failure).
            VALIDATION_FAILED, CONFLICT (same title at the same instant),
            INTERNAL.
    """
    fields, errors = validate_event_data(data, now)
    if errors:
        return None, Failure(ErrorKind.VALIDATION_FAILED, "Validation failed", errors)

    fields["user_id"] = user_id
    logging.info(f"[Events] User {user_id} creating event \"{fields['title']}\"")

    try:
        title = fields["title"].lower()
        for existing in repo.list_events_by_owner(user_id):
            if existing["title"].lower() == title and _same_instant(existing["date"], fields["date"]):
                return None, Failure(
                    ErrorKind.CONFLICT,
                    "You already have an event with the same title at the same date and time",
                )

        event = repo.insert_event(fields)
    except ForeignKeyViolationError:
        return None, Failure(ErrorKind.CONFLICT, "Invalid user reference")
    except StorageError:
        logging.exception(f"[Events] Create failed for user {user_id}")
        return None, internal_failure()

    return {**event, "owner": _owner(user_id, email)}, None


def get_event(repo, event_id: int) -> Result:
    try:
        event = repo.find_event(event_id)
    except StorageError:
        logging.exception(f"[Events] Could not load event {event_id}")
        return None, internal_failure()

    if not event:
        return None, EVENT_NOT_FOUND
    return event, None


def list_events(repo) -> Result:
    """All events, soonest first."""
    try:
        return repo.list_events(), None
    except StorageError:
        logging.exception("[Events] Could not list events")
        return None, internal_failure()


def list_user_events(repo, user_id: int) -> Result:
    """Events owned by `user_id`, soonest first."""
    try:
        return repo.list_events_by_owner(user_id), None
    except StorageError:
        logging.exception(f"[Events] Could not list events for user {user_id}")
        return None, internal_failure()


def update_event(repo, event_id: int, user_id: int, email: Optional[str],
                 data: Dict[str, Any], now: datetime) -> Result:
    """
    Apply a partial update. Fields absent from `data` keep their value.

    Checks, in order: NOT_FOUND, UNAUTHORIZED, VALIDATION_FAILED.
    """
    event, failure = get_event(repo, event_id)
    if failure:
        return None, failure

    if event["user_id"] != user_id:
        return None, Failure(ErrorKind.UNAUTHORIZED, "You can only update events you created")

    fields, errors = validate_event_update(data, now)
    if errors:
        return None, Failure(ErrorKind.VALIDATION_FAILED, "Validation failed", errors)

    logging.info(f"[Events] User {user_id} updating event {event_id}: {sorted(fields)}")

    try:
        updated = repo.update_event(event_id, fields) if fields else event
    except StorageError:
        logging.exception(f"[Events] Update failed for event {event_id}")
        return None, internal_failure()

    if not updated:
        # deleted between the lookup and the update
        return None, EVENT_NOT_FOUND
    return {**updated, "owner": _owner(user_id, email)}, None


def delete_event(repo, event_id: int, user_id: int) -> Result:
    """
    Delete an owned event; its registrations go with it.

    Checks, in order: NOT_FOUND, UNAUTHORIZED.
    """
    event, failure = get_event(repo, event_id)
    if failure:
        return None, failure

    if event["user_id"] != user_id:
        return None, Failure(ErrorKind.UNAUTHORIZED, "You can only delete events you created")

    try:
        deleted = repo.delete_event(event_id)
    except StorageError:
        logging.exception(f"[Events] Delete failed for event {event_id}")
        return None, internal_failure()

    if not deleted:
        return None, EVENT_NOT_FOUND

    logging.info(f"[Events] Event {event_id} deleted by user {user_id}")
    return {"event_id": event_id}, None


# --- REGISTRATIONS ---

def _missing_registration_target(repo, event_id: int) -> Failure:
    """Pick the failure for a foreign-key rejection on a registration insert."""
    try:
        event = repo.find_event(event_id)
    except StorageError:
        logging.exception(f"[Events] Could not re-check event {event_id}")
        return internal_failure()

    if not event:
        return EVENT_NOT_FOUND
    return Failure(ErrorKind.NOT_FOUND, "User account not found")


def register_for_event(repo, event_id: int, user_id: int, now: datetime) -> Result:
    """
    Register `user_id` for an event.

    Checks, in order: NOT_FOUND, SELF_REGISTRATION, ALREADY_REGISTERED,
    EVENT_PAST. A unique violation raised by storage after the checks
    passed (two concurrent submits) is also ALREADY_REGISTERED.

    Returns:
        tuple: ({"registration_id", "event_id", "user_id", "registered_at"}, None)
    """
    event, failure = get_event(repo, event_id)
    if failure:
        return None, failure

    if event["user_id"] == user_id:
        return None, Failure(ErrorKind.SELF_REGISTRATION, "You cannot register for your own event")

    already = Failure(ErrorKind.ALREADY_REGISTERED, "You are already registered for this event")

    try:
        if repo.find_registration(event_id, user_id):
            return None, already

        if not event["date"] > now:
            return None, Failure(ErrorKind.EVENT_PAST, "Cannot register for past events")

        registration = repo.insert_registration(event_id, user_id, now)
    except UniqueViolationError:
        return None, already
    except ForeignKeyViolationError:
        # either the event or the caller's account was removed mid-request
        return None, _missing_registration_target(repo, event_id)
    except StorageError:
        logging.exception(f"[Events] Registration failed for event {event_id}, user {user_id}")
        return None, internal_failure()

    logging.info(f"[Events] User {user_id} registered for event {event_id}")
    return registration, None


def unregister_from_event(repo, event_id: int, user_id: int) -> Result:
    """
    Remove the caller's registration.

    Checks, in order: NOT_FOUND, NOT_REGISTERED.
    """
    event, failure = get_event(repo, event_id)
    if failure:
        return None, failure

    not_registered = Failure(ErrorKind.NOT_REGISTERED, "You are not registered for this event")

    try:
        if not repo.find_registration(event_id, user_id):
            return None, not_registered
        removed = repo.delete_registration(event_id, user_id)
    except StorageError:
        logging.exception(f"[Events] Unregister failed for event {event_id}, user {user_id}")
        return None, internal_failure()

    if not removed:
        return None, not_registered

    logging.info(f"[Events] User {user_id} unregistered from event {event_id}")
    return {"event_id": event_id}, None


def get_event_registrations(repo, event_id: int, user_id: int) -> Result:
    """
    Registrants of an event, visible to its owner only.

    Returns:
        tuple: ({"event": {...}, "registration_count": int, "registrations": [...]}, None)
    """
    event, failure = get_event(repo, event_id)
    if failure:
        return None, failure

    if event["user_id"] != user_id:
        return None, Failure(ErrorKind.UNAUTHORIZED, "You can only view registrations for your own events")

    try:
        rows = repo.list_event_registrations(event_id)
    except StorageError:
        logging.exception(f"[Events] Could not list registrations for event {event_id}")
        return None, internal_failure()

    registrations: List[Dict[str, Any]] = [
        {
            "id": row["registration_id"],
            "user": {"id": row["user_id"], "email": row["email"], "name": row["name"]},
            "registered_at": row["registered_at"],
        }
        for row in rows
    ]

    return {
        "event": {"id": event["event_id"], "title": event["title"], "date": event["date"]},
        "registration_count": len(registrations),
        "registrations": registrations,
    }, None


def get_user_registrations(repo, user_id: int) -> Result:
    """Events `user_id` is registered for, soonest first, with each owner's snapshot."""
    try:
        rows = repo.list_user_registrations(user_id)
    except StorageError:
        logging.exception(f"[Events] Could not list registrations for user {user_id}")
        return None, internal_failure()

    return [
        {
            "registration_id": row["registration_id"],
            "registered_at": row["registered_at"],
            "event": {
                "id": row["event_id"],
                "title": row["title"],
                "description": row["description"],
                "address": row["address"],
                "date": row["date"],
                "image": row.get("image"),
                "owner": {
                    "id": row["owner_id"],
                    "email": row["owner_email"],
                    "name": row["owner_name"],
                },
            },
        }
        for row in rows
    ], None
