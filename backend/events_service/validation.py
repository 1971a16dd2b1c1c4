"""
Input validation and sanitization for event payloads.

Both entry points collect every problem before returning, so a request
is either accepted as a whole or rejected with the full list of messages.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

# --- CONSTANTS FOR VALIDATION ---
TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
ADDRESS_MAX_LENGTH = 200
MIN_EVENT_YEAR = 1900
MAX_EVENT_YEAR = 2100

_WHITESPACE = re.compile(r"\s+")


def sanitize_text(value: Any) -> str:
    """
    Trim and collapse runs of whitespace to a single space.
    Anything that is not a string becomes ''.
    """
    if not isinstance(value, str):
        return ""
    return _WHITESPACE.sub(" ", value.strip())


def parse_dt(val: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 string into an aware datetime.

    A trailing 'Z' is accepted and naive values are taken as UTC.

    Returns:
        datetime: The parsed datetime, or None if invalid.
    """
    if not val or not isinstance(val, str):
        return None
    try:
        if val.endswith('Z'):
            val = val[:-1] + '+00:00'
        parsed = datetime.fromisoformat(val)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def one_year_after(now: datetime) -> datetime:
    try:
        return now.replace(year=now.year + 1)
    except ValueError:
        # Feb 29 -> Feb 28
        return now.replace(year=now.year + 1, day=28)


def _check_optional_text(label: str, value: Any, max_length: int, errors: List[str]) -> Optional[str]:
    if not isinstance(value, str):
        errors.append(f"{label} must be a string")
        return None
    cleaned = sanitize_text(value)
    if len(cleaned) > max_length:
        errors.append(f"{label} must not exceed {max_length} characters")
        return None
    return cleaned or None


def _check_title(value: Any, errors: List[str]) -> Optional[str]:
    if not value or not isinstance(value, str):
        errors.append("Title is required and must be a string")
        return None
    title = sanitize_text(value)
    if len(title) < TITLE_MIN_LENGTH:
        errors.append(f"Title must be at least {TITLE_MIN_LENGTH} characters long")
        return None
    if len(title) > TITLE_MAX_LENGTH:
        errors.append(f"Title must not exceed {TITLE_MAX_LENGTH} characters")
        return None
    return title


def validate_event_data(data: Dict[str, Any], now: datetime) -> Tuple[Optional[Dict[str, Any]], List[str]]:
    """
    Validate and sanitize a new event.

    Args:
        data (dict): Raw input with title, description, address, date, image.
        now (datetime): Reference time for the date rules.

    Returns:
        tuple: (fields, []) when valid, (None, errors) otherwise.
    """
    errors: List[str] = []
    fields: Dict[str, Any] = {}

    fields["title"] = _check_title(data.get("title"), errors)

    if data.get("description") is not None:
        fields["description"] = _check_optional_text(
            "Description", data["description"], DESCRIPTION_MAX_LENGTH, errors)

    if data.get("address") is not None:
        fields["address"] = _check_optional_text(
            "Address", data["address"], ADDRESS_MAX_LENGTH, errors)

    if data.get("image") is not None:
        if isinstance(data["image"], str):
            fields["image"] = data["image"].strip() or None
        else:
            errors.append("Image must be a string")

    date = data.get("date")
    if not date:
        errors.append("Date is required")
    else:
        event_date = parse_dt(date)
        if event_date is None:
            errors.append("Please provide a valid date in ISO format (e.g., 2024-12-25T15:00:00Z)")
        else:
            if event_date <= now:
                errors.append("Event date must be in the future")
            if event_date > one_year_after(now):
                errors.append("Event date cannot be more than 1 year in the future")
            if not MIN_EVENT_YEAR <= event_date.year <= MAX_EVENT_YEAR:
                errors.append(f"Event date must be between years {MIN_EVENT_YEAR} and {MAX_EVENT_YEAR}")
            fields["date"] = event_date

    if errors:
        return None, errors
    return fields, []


def validate_event_update(data: Dict[str, Any], now: datetime) -> Tuple[Optional[Dict[str, Any]], List[str]]:
    """
    Validate a partial update. Only keys present in `data` are checked and
    returned; a None value means "leave as is".

    Returns:
        tuple: (fields, []) when valid, (None, errors) otherwise.
    """
    errors: List[str] = []
    fields: Dict[str, Any] = {}

    if "title" in data:
        fields["title"] = _check_title(data["title"], errors)

    for key, label, max_length in (("description", "Description", DESCRIPTION_MAX_LENGTH),
                                   ("address", "Address", ADDRESS_MAX_LENGTH)):
        if data.get(key) is not None:
            fields[key] = _check_optional_text(label, data[key], max_length, errors)

    if data.get("image") is not None:
        if isinstance(data["image"], str):
            fields["image"] = data["image"].strip() or None
        else:
            errors.append("Image must be a string")

    if "date" in data:
        event_date = parse_dt(data["date"])
        if event_date is None:
            errors.append("Please provide a valid date in ISO format")
        elif event_date <= now:
            errors.append("Event date must be in the future")
        else:
            fields["date"] = event_date

    if errors:
        return None, errors
    return {k: v for k, v in fields.items() if v is not None}, []
